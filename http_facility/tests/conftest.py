"""
http_facility test configuration.

All tests run against httpx.MockTransport, no network or servers required.
"""
from __future__ import annotations

import json
import os

import httpx
import pytest
import pytest_asyncio

# ── Pin config for all tests ───────────────────────────────────────────────
# These must be set before any http_facility modules are imported.

os.environ.setdefault("HTTP_FACILITY_LOG_LEVEL", "WARNING")
os.environ.setdefault("HTTP_FACILITY_LOG_FORMAT", "console")

BASE_URL = "http://127.0.0.1:7070"
FILE_BYTES = bytes(range(256)) * 64


# ── Fake server ────────────────────────────────────────────────────────────

def _file_stream():
    async def chunks():
        for i in range(0, len(FILE_BYTES), 1000):
            yield FILE_BYTES[i:i + 1000]
    return chunks()


def app(request: httpx.Request) -> httpx.Response:
    """A small fake server covering the routes the tests need."""
    path = request.url.path
    method = request.method

    if method not in ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"):
        return httpx.Response(400, text="Bad Request")
    if method == "OPTIONS":
        return httpx.Response(204, headers={"allow": "GET,HEAD"})
    if path == "/foo/bar/1":
        return httpx.Response(
            500, content=b'{"auth":false}', headers={"content-type": "application/json"}
        )
    if path in ("/foo/bar/2", "/foo/bar/3", "/get_test"):
        return httpx.Response(200, text="test", headers={"content-type": "text/html; charset=utf-8"})
    if path == "/echo":
        return httpx.Response(
            200,
            json={
                "method": method,
                "url": str(request.url),
                "headers": dict(request.headers),
                "body": request.content.decode(),
            },
        )
    if path == "/json_echo":
        return httpx.Response(200, json={"received": json.loads(request.content)})
    if path == "/query":
        query: dict[str, object] = {}
        for key, value in request.url.params.multi_items():
            if key in query:
                prev = query[key]
                query[key] = (prev if isinstance(prev, list) else [prev]) + [value]
            else:
                query[key] = value
        return httpx.Response(200, json=query)
    if path == "/html":
        return httpx.Response(200, text="<test />")
    if path == "/fail_text":
        return httpx.Response(500, text="test")
    if path == "/moved":
        return httpx.Response(301, headers={"location": f"{BASE_URL}/get_test"})
    if path == "/slow":
        raise httpx.ReadTimeout(f"network timeout at: {request.url}", request=request)
    if path == "/file":
        return httpx.Response(
            200,
            headers={
                "content-type": "image/png",
                "content-disposition": "attachment; filename=bfx.png",
            },
            content=_file_stream(),
        )
    return httpx.Response(404, text="Not Found")


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_config():
    """Each test gets a fresh config singleton."""
    from http_facility.tier0_core.config import _reset_config

    _reset_config()
    yield
    _reset_config()


@pytest.fixture
def transport() -> httpx.MockTransport:
    return httpx.MockTransport(app)


@pytest.fixture
def config():
    from http_facility.tier0_core.config import FacilityConfig
    return FacilityConfig(base_url=BASE_URL)


@pytest_asyncio.fixture
async def fac(config, transport):
    """A started facility backed by the fake server."""
    from http_facility.tier3_platform.facility import HttpFacility

    client = httpx.AsyncClient(transport=transport)
    facility = HttpFacility(config, client=client)
    await facility.start()
    yield facility
    await facility.stop()
    await client.aclose()
