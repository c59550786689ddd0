"""
http_facility.tier0_core.http
───────────────────────────────
HTTP primitives: the success range, verb names, and the response envelope
returned by every successful dispatch.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def is_success(status: int) -> bool:
    return 200 <= status < 300


# ── Verbs ─────────────────────────────────────────────────────────────────

GET = "GET"
HEAD = "HEAD"
POST = "POST"
PUT = "PUT"
PATCH = "PATCH"
DELETE = "DELETE"
OPTIONS = "OPTIONS"

# Responses to these verbs carry no body worth decoding
HEADER_ONLY_METHODS = frozenset({HEAD, OPTIONS})


# ── Response envelope ─────────────────────────────────────────────────────

@dataclass
class Envelope:
    """Result of a successful dispatch: decoded body plus lower-cased headers."""
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {"body": self.body, "headers": self.headers}


__all__ = [
    "Envelope",
    "is_success",
    "HEADER_ONLY_METHODS",
]
