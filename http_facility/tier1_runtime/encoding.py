"""
http_facility.tier1_runtime.encoding
──────────────────────────────────────
Request body serialization and response body decoding.

Request side:   json → serialized with the json module, content-type set
                anything else → body passed through untouched
Response side:  json → parsed value
                text → str
                raw  → the live streaming response, unread
                other → bytes
"""
from __future__ import annotations

import json
from typing import Any

import httpx

from http_facility.tier0_core.errors import ResponseDecodeError
from http_facility.tier1_runtime.options import JSON, RAW, TEXT, EncodingSpec

CONTENT_TYPE_JSON = "application/json"


def _has_header(headers: dict[str, str], name: str) -> bool:
    name = name.lower()
    return any(k.lower() == name for k in headers)


def encode_body(encoding: EncodingSpec, body: Any, headers: dict[str, str]) -> tuple[Any, dict[str, str]]:
    """
    Serialize *body* for the wire according to ``encoding.req``.

    Returns the body and a (possibly extended) copy of *headers*; the caller's
    mapping is never modified.
    """
    headers = dict(headers)
    if encoding.req == JSON:
        if not _has_header(headers, "content-type"):
            headers["content-type"] = CONTENT_TYPE_JSON
        if body is not None:
            body = json.dumps(body, separators=(",", ":"))
    return body, headers


async def decode_body(encoding: EncodingSpec, response: httpx.Response) -> Any:
    """
    Decode a streamed *response* according to ``encoding.res``.

    The response is closed once read, except for ``raw`` which hands the
    open stream to the caller. Raises ResponseDecodeError on malformed JSON.
    """
    if encoding.res == RAW:
        return response

    try:
        await response.aread()
    finally:
        await response.aclose()

    if encoding.res == JSON:
        try:
            return json.loads(response.text)
        except ValueError as exc:
            raise ResponseDecodeError(str(response.request.url), JSON, str(exc)) from exc
    if encoding.res == TEXT:
        return response.text
    return response.content


def header_map(response: httpx.Response) -> dict[str, str]:
    """Lower-cased header mapping; repeated headers are comma-joined."""
    return {k.lower(): v for k, v in response.headers.items()}


__all__ = ["encode_body", "decode_body", "header_map", "CONTENT_TYPE_JSON"]
