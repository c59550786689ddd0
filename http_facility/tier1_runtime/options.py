"""
http_facility.tier1_runtime.options
─────────────────────────────────────
Request options and their normalization. Callers may pass a plain mapping
(``{"method": "post", "encoding": "json"}``) or a ``RequestOptions``
instance; loose shapes such as string-or-mapping ``encoding`` and
string-or-pairs-or-mapping ``qs`` are reduced to one canonical form here,
before the dispatcher sees them.

Validation failures raise ``RequestOptionsError`` (not raw Pydantic errors).
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qsl

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from http_facility.tier0_core.errors import RequestOptionsError

TEXT = "text"
JSON = "json"
RAW = "raw"

QueryPairs = list[tuple[str, str]]


# ── Encoding ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class EncodingSpec:
    """Resolved request/response body encodings."""
    req: str = TEXT
    res: str = TEXT

    @classmethod
    def parse(cls, value: Any) -> EncodingSpec:
        """
        Normalize the ``encoding`` option:

            None                      → text / text
            "json"                    → json / json
            {"req": "json"}           → json / text
            EncodingSpec(...)         → unchanged
        """
        if value is None:
            return cls()
        if isinstance(value, EncodingSpec):
            return value
        if isinstance(value, str):
            return cls(req=value, res=value)
        if isinstance(value, Mapping):
            unknown = set(value) - {"req", "res"}
            if unknown:
                raise RequestOptionsError(
                    "Invalid encoding option.",
                    fields={"encoding": f"unexpected keys {sorted(unknown)}"},
                )
            return cls(req=value.get("req") or TEXT, res=value.get("res") or TEXT)
        raise RequestOptionsError(
            "Invalid encoding option.",
            fields={"encoding": f"expected str or mapping, got {type(value).__name__}"},
        )


# ── Query string ──────────────────────────────────────────────────────────────

def _qs_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _expand(key: Any, value: Any) -> QueryPairs:
    if isinstance(value, (list, tuple)):
        return [(str(key), _qs_value(v)) for v in value]
    return [(str(key), _qs_value(value))]


def normalize_qs(value: Any) -> QueryPairs:
    """
    Reduce a query parameter value to an ordered list of (key, value) pairs.

    Accepts a query string (``"a=1&b=c"``), a mapping (``{"a": 1}``, list
    values expand to repeated keys), a sequence of pairs
    (``[("a", 1), ("b", "c")]``) or a scalar (``123`` → ``[("123", "")]``).
    """
    if value is None:
        return []
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode()
    if isinstance(value, str):
        return parse_qsl(value.lstrip("?"), keep_blank_values=True)
    if isinstance(value, Mapping):
        pairs: QueryPairs = []
        for k, v in value.items():
            pairs.extend(_expand(k, v))
        return pairs
    if isinstance(value, (int, float)):
        return [(_qs_value(value), "")]
    if isinstance(value, Iterable):
        pairs = []
        for item in value:
            if not isinstance(item, (list, tuple)) or len(item) != 2:
                raise RequestOptionsError(
                    "Invalid qs option.",
                    fields={"qs": f"expected [key, value] pairs, got {item!r}"},
                )
            pairs.append((str(item[0]), _qs_value(item[1])))
        return pairs
    raise RequestOptionsError(
        "Invalid qs option.",
        fields={"qs": f"unsupported type {type(value).__name__}"},
    )


# ── Request options ───────────────────────────────────────────────────────────

class RequestOptions(BaseModel):
    """Per-call options. Unset fields fall back to facility defaults."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    body: Any = None
    headers: dict[str, str] = Field(default_factory=dict)
    method: str = "GET"
    redirect: bool = False
    agent: Any = None
    compress: bool = True
    timeout: float | None = Field(default=None, ge=0)  # milliseconds
    encoding: EncodingSpec = Field(default_factory=EncodingSpec)
    qs: QueryPairs = Field(default_factory=list)

    @field_validator("method", mode="before")
    @classmethod
    def upper_method(cls, v: Any) -> Any:
        if v is None:
            return "GET"
        return v.upper() if isinstance(v, str) else v

    @field_validator("headers", mode="before")
    @classmethod
    def stringify_headers(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, Mapping):
            return {str(k): str(val) for k, val in v.items()}
        return v

    @field_validator("encoding", mode="before")
    @classmethod
    def parse_encoding(cls, v: Any) -> EncodingSpec:
        return EncodingSpec.parse(v)

    @field_validator("qs", mode="before")
    @classmethod
    def parse_qs(cls, v: Any) -> QueryPairs:
        return normalize_qs(v)

    @classmethod
    def parse(cls, value: RequestOptions | Mapping[str, Any] | None) -> RequestOptions:
        """Build options from a mapping, raising RequestOptionsError on bad input."""
        if value is None:
            return cls()
        if isinstance(value, RequestOptions):
            return value
        if not isinstance(value, Mapping):
            raise RequestOptionsError(
                "Invalid request options.",
                fields={"options": f"expected mapping, got {type(value).__name__}"},
            )
        try:
            return cls.model_validate(dict(value))
        except PydanticValidationError as exc:
            fields = {
                ".".join(str(loc) for loc in err["loc"]) or "options": err["msg"]
                for err in exc.errors()
            }
            raise RequestOptionsError("Invalid request options.", fields=fields) from exc


__all__ = ["RequestOptions", "EncodingSpec", "normalize_qs", "TEXT", "JSON", "RAW"]
