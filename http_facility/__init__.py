"""
http_facility
─────────────
Stable top-level exports. Import from here, not from sub-modules directly.
Every name exported here is part of the public API and subject to semver.
"""
from http_facility.tier0_core.logging import get_logger
from http_facility.tier0_core.errors import (
    FacilityError,
    FacilityNotStartedError,
    HttpError,
    RequestOptionsError,
    ResponseDecodeError,
)
from http_facility.tier0_core.config import FacilityConfig, get_config
from http_facility.tier0_core.http import Envelope

from http_facility.tier1_runtime.options import EncodingSpec, RequestOptions
from http_facility.tier1_runtime.completion import complete

from http_facility.tier2_reliability.lifecycle import Lifecycle, LifecycleHooks

from http_facility.tier3_platform.facility import HttpClient, HttpFacility

__version__ = "0.1.0"
__all__ = [
    # facility
    "HttpFacility", "HttpClient",
    # config
    "FacilityConfig", "get_config",
    # options
    "RequestOptions", "EncodingSpec",
    # results & errors
    "Envelope",
    "FacilityError", "HttpError", "ResponseDecodeError",
    "RequestOptionsError", "FacilityNotStartedError",
    # completion
    "complete",
    # lifecycle
    "Lifecycle", "LifecycleHooks",
    # logging
    "get_logger",
]
