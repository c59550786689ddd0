"""
http_facility.tier3_platform.facility
───────────────────────────────────────
The HTTP facility: one dispatch routine plus fixed-verb helpers. Resolves
the URL against the configured base, composes the query string, negotiates
body encodings, sends through the injected client and classifies the result.

Every entry point completes either through an optional trailing callback or
by returning an awaitable (see tier1_runtime.completion).

Backed by: httpx (async HTTP). Retry, pooling and TLS belong to the client.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import httpx

from http_facility.tier0_core.config import FacilityConfig, get_config
from http_facility.tier0_core.errors import (
    FacilityNotStartedError,
    HttpError,
    RequestOptionsError,
    ResponseDecodeError,
)
from http_facility.tier0_core.http import (
    DELETE,
    GET,
    HEAD,
    HEADER_ONLY_METHODS,
    OPTIONS,
    PATCH,
    POST,
    PUT,
    Envelope,
    is_success,
)
from http_facility.tier0_core.logging import get_logger
from http_facility.tier1_runtime.completion import Callback, complete, split_callback
from http_facility.tier1_runtime.encoding import decode_body, encode_body, header_map
from http_facility.tier1_runtime.options import RequestOptions, normalize_qs
from http_facility.tier1_runtime.url import compose_query, resolve_url
from http_facility.tier2_reliability.lifecycle import LifecycleHooks

log = get_logger(__name__)

Options = RequestOptions | Mapping[str, Any] | None


@runtime_checkable
class HttpClient(Protocol):
    """The client surface the facility needs; httpx.AsyncClient satisfies it."""

    def build_request(self, method: str, url: Any, **kwargs: Any) -> httpx.Request: ...
    async def send(self, request: httpx.Request, **kwargs: Any) -> httpx.Response: ...


class HttpFacility:
    """
    Configurable HTTP request dispatcher.

    Usage::

        fac = HttpFacility(FacilityConfig(base_url="http://user-service"))
        await fac.start()

        res = await fac.get("/users/123", {"encoding": "json"})
        res.body, res.headers

        fac.post("/users", {"body": {"name": "a"}, "encoding": "json"}, on_done)

    The config object is held by reference and read at the start of every
    call; changing it affects only calls started afterwards.
    """

    name = "http"

    def __init__(
        self,
        config: FacilityConfig | None = None,
        *,
        client: HttpClient | None = None,
        hooks: LifecycleHooks | None = None,
    ) -> None:
        self.config = config if config is not None else get_config()
        self.hooks = hooks or LifecycleHooks()
        self._client = client
        self._owns_client = False
        self._started = False

    # ── Config passthrough ────────────────────────────────────────────────────

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @base_url.setter
    def base_url(self, value: str) -> None:
        self.config.base_url = value

    @property
    def timeout(self) -> int:
        return self.config.timeout

    @timeout.setter
    def timeout(self, value: int) -> None:
        self.config.timeout = value

    @property
    def debug(self) -> bool:
        return self.config.debug

    @debug.setter
    def debug(self, value: bool) -> None:
        self.config.debug = value

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    @property
    def started(self) -> bool:
        return self._started

    def start(self, callback: Callback | None = None):
        return complete(self._start(), callback)

    def stop(self, callback: Callback | None = None):
        return complete(self._stop(), callback)

    async def _start(self) -> None:
        if self._started:
            return
        if self._client is None:
            self._client = httpx.AsyncClient()
            self._owns_client = True
        await self.hooks.run_start()
        self._started = True
        log.info("facility.started", facility=self.name, base_url=self.config.base_url)

    async def _stop(self) -> None:
        if not self._started:
            return
        try:
            await self.hooks.run_stop()
        finally:
            if self._owns_client and self._client is not None:
                await self._client.aclose()
                self._client = None
                self._owns_client = False
            self._started = False
            log.info("facility.stopped", facility=self.name)

    async def __aenter__(self) -> HttpFacility:
        await self._start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self._stop()

    # ── Public API ────────────────────────────────────────────────────────────

    def request(self, path: str, options: Options | Callback = None, callback: Callback | None = None):
        """
        Perform one HTTP call.

        Returns an awaitable yielding an Envelope, or, when *callback* is
        given (also accepted in place of *options*), a task that invokes
        ``callback(error, envelope)`` exactly once. The callback form must be
        called from inside a running event loop; without one it raises
        RuntimeError immediately and the callback is never invoked.
        """
        options, callback = split_callback(options, callback)
        return complete(self._dispatch(path, options), callback)

    def get(self, path: str, options: Options | Callback = None, callback: Callback | None = None):
        return self._method_request(path, GET, options, callback)

    def post(self, path: str, options: Options | Callback = None, callback: Callback | None = None):
        return self._method_request(path, POST, options, callback)

    def put(self, path: str, options: Options | Callback = None, callback: Callback | None = None):
        return self._method_request(path, PUT, options, callback)

    def patch(self, path: str, options: Options | Callback = None, callback: Callback | None = None):
        return self._method_request(path, PATCH, options, callback)

    def delete(self, path: str, options: Options | Callback = None, callback: Callback | None = None):
        return self._method_request(path, DELETE, options, callback)

    def head(self, path: str, options: Options | Callback = None, callback: Callback | None = None):
        return self._method_request(path, HEAD, options, callback)

    def options(self, path: str, options: Options | Callback = None, callback: Callback | None = None):
        return self._method_request(path, OPTIONS, options, callback)

    def _method_request(
        self,
        path: str,
        method: str,
        options: Options | Callback = None,
        callback: Callback | None = None,
    ):
        """Dispatch with *method* forced, whatever ``options["method"]`` says."""
        options, callback = split_callback(options, callback)
        return complete(self._dispatch(path, options, method=method), callback)

    # ── Dispatch ──────────────────────────────────────────────────────────────

    async def _dispatch(self, path: str, options: Options, method: str | None = None) -> Envelope:
        opts = RequestOptions.parse(options)
        if method is not None:
            opts = opts.model_copy(update={"method": method.upper()})

        cfg = self.config
        url = resolve_url(path, cfg.base_url)
        url = compose_query(url, normalize_qs(cfg.qs), opts.qs)

        body, headers = encode_body(opts.encoding, opts.body, opts.headers)
        if not opts.compress and not any(k.lower() == "accept-encoding" for k in headers):
            headers["accept-encoding"] = "identity"

        timeout_ms = opts.timeout if opts.timeout is not None else cfg.timeout
        client = self._client_for(opts.agent)

        response = await self._send(
            client,
            opts.method,
            url,
            headers=headers,
            body=body,
            timeout=timeout_ms / 1000 if timeout_ms else None,
            follow_redirects=bool(opts.redirect),
        )

        res_headers = header_map(response)
        http_error: HttpError | None = None
        if not is_success(response.status_code):
            http_error = HttpError.from_status(
                response.status_code, response.reason_phrase, res_headers
            )

        try:
            if opts.method in HEADER_ONLY_METHODS:
                await response.aclose()
                res_body: Any = res_headers
            else:
                res_body = await decode_body(opts.encoding, response)
        except ResponseDecodeError as exc:
            if http_error is None:
                raise
            if cfg.debug:
                log.error("http.decode_failed", url=url, status=http_error.status, error=str(exc))
            raise http_error from None

        if http_error is not None:
            http_error.attach_response(res_body)
            raise http_error

        return Envelope(body=res_body, headers=res_headers)

    def _client_for(self, agent: Any) -> HttpClient:
        if agent is not None:
            if not isinstance(agent, HttpClient):
                raise RequestOptionsError(
                    "Invalid agent option.",
                    fields={"agent": f"{type(agent).__name__} does not implement build_request/send"},
                )
            return agent
        if self._client is None:
            raise FacilityNotStartedError(
                f"Facility {self.name!r} is not started; call start() or inject a client."
            )
        return self._client

    async def _send(
        self,
        client: HttpClient,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        body: Any,
        timeout: float | None,
        follow_redirects: bool,
    ) -> httpx.Response:
        """Hand the call to the client. Transport errors propagate unwrapped."""
        request = client.build_request(
            method, url, headers=headers, content=body, timeout=timeout
        )
        log.debug("http.request", method=method, url=url, headers=headers)
        response = await client.send(request, stream=True, follow_redirects=follow_redirects)
        log.debug("http.response", method=method, url=url, status=response.status_code)
        return response


__all__ = ["HttpFacility", "HttpClient"]
