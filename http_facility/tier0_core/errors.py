"""
http_facility.tier0_core.errors
─────────────────────────────────
Error taxonomy for the facility. Three kinds of failure reach callers:

- transport errors: raised by the HTTP client (httpx), never wrapped here
- protocol errors: non-2xx responses, always ``HttpError``
- decode errors: malformed bodies, ``ResponseDecodeError``

Everything defined in this module derives from ``FacilityError``.
"""
from __future__ import annotations

from typing import Any


# ── Base error ────────────────────────────────────────────────────────────────

class FacilityError(Exception):
    """
    Base class for all facility errors. Every error has:
    - code: stable machine-readable string (snake_case)
    - message: human readable description
    """

    code: str = "facility_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code or self.__class__.code
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"name": type(self).__name__, "code": self.code, "message": self.message}


# ── Protocol errors ───────────────────────────────────────────────────────────

class HttpError(FacilityError):
    """
    Non-2xx HTTP response. Carries the protocol metadata so it can be shown
    directly to end users.

    ``response`` holds the decoded body when decoding succeeded, else None.
    """

    code = "http_error"

    def __init__(
        self,
        message: str,
        status: int,
        status_text: str,
        headers: dict[str, str] | None = None,
        response: Any = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.status_text = status_text
        self.headers = headers if headers is not None else {}
        self.response = response
        self.add_note(f"Headers: {self.headers!r}")
        if response is not None:
            self.add_note(f"Response: {response!r}")

    @classmethod
    def from_status(
        cls, status: int, status_text: str, headers: dict[str, str] | None = None
    ) -> HttpError:
        return cls(f"ERR_HTTP: {status} - {status_text}", status, status_text, headers)

    def attach_response(self, response: Any) -> None:
        """Attach the decoded response body once decoding has completed."""
        self.response = response
        self.add_note(f"Response: {response!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": type(self).__name__,
            "message": self.message,
            "status": self.status,
            "status_text": self.status_text,
            "headers": self.headers,
            "response": self.response,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.message!r}, status={self.status}, "
            f"status_text={self.status_text!r})"
        )


# ── Decode errors ─────────────────────────────────────────────────────────────

class ResponseDecodeError(FacilityError):
    """Response body could not be decoded with the negotiated encoding."""

    code = "response_decode_error"

    def __init__(self, url: str, encoding: str, reason: str) -> None:
        self.url = url
        self.encoding = encoding
        self.reason = reason
        super().__init__(f"invalid {encoding} response body at {url} reason: {reason}")


# ── Usage errors ──────────────────────────────────────────────────────────────

class RequestOptionsError(FacilityError):
    """Request options failed validation."""

    code = "request_options_error"

    def __init__(self, message: str = "Invalid request options.", fields: dict | None = None) -> None:
        self.fields = fields or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        if self.fields:
            d["fields"] = self.fields
        return d


class FacilityNotStartedError(FacilityError):
    """A request was dispatched before start() and no client was injected."""

    code = "facility_not_started"


__all__ = [
    "FacilityError",
    "HttpError",
    "ResponseDecodeError",
    "RequestOptionsError",
    "FacilityNotStartedError",
]
