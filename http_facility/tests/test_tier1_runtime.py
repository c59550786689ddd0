"""Tests for tier1_runtime modules."""
from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from http_facility.tier0_core.errors import RequestOptionsError, ResponseDecodeError
from http_facility.tier1_runtime.completion import complete, split_callback
from http_facility.tier1_runtime.encoding import decode_body, encode_body, header_map
from http_facility.tier1_runtime.options import EncodingSpec, RequestOptions, normalize_qs
from http_facility.tier1_runtime.url import compose_query, resolve_url


# ── url ────────────────────────────────────────────────────────────────────

class TestResolveUrl:
    def test_absolute_url_is_used_verbatim(self):
        assert resolve_url("https://example.com/x?y=1", "http://base") == "https://example.com/x?y=1"

    def test_relative_path_joined_with_base(self):
        assert resolve_url("foo/bar", "http://base") == "http://base/foo/bar"

    def test_leading_slash_is_ignored(self):
        assert resolve_url("/foo/bar", "http://base") == resolve_url("foo/bar", "http://base")

    def test_only_one_leading_slash_is_stripped(self):
        assert resolve_url("//foo", "http://base") == "http://base//foo"

    def test_empty_base_leaves_relative_url(self):
        assert resolve_url("foo/bar", "") == "/foo/bar"


class TestComposeQuery:
    def test_no_params_leaves_url_untouched(self):
        assert compose_query("http://base/x?", [], []) == "http://base/x?"

    def test_defaults_then_params_accumulate(self):
        url = compose_query(
            "http://base/x?",
            normalize_qs({"a": 2, "d": "e"}),
            normalize_qs("a=1&b=c"),
        )
        params = httpx.URL(url).params
        assert params.get_list("a") == ["2", "1"]
        assert params["b"] == "c"
        assert params["d"] == "e"

    def test_existing_query_is_kept_first(self):
        url = compose_query("http://base/x?z=0", [], [("a", "1")])
        assert url == "http://base/x?z=0&a=1"

    def test_values_are_escaped(self):
        url = compose_query("http://base/x", [], [("q", "a b&c")])
        assert url == "http://base/x?q=a+b%26c"

    def test_existing_escapes_are_not_reencoded(self):
        url = compose_query("http://base/x?sig=%FF", [], [("a", "1")])
        assert url == "http://base/x?sig=%FF&a=1"

    def test_existing_valueless_key_keeps_its_form(self):
        url = compose_query("http://base/x?flag", [], [("a", "1")])
        assert url == "http://base/x?flag&a=1"

    def test_bare_question_mark_is_absorbed(self):
        url = compose_query("http://base/x?", [("d", "0")], [])
        assert url == "http://base/x?d=0"


# ── options ────────────────────────────────────────────────────────────────

class TestNormalizeQs:
    def test_mapping(self):
        assert normalize_qs({"a": 1, "b": "c"}) == [("a", "1"), ("b", "c")]

    def test_pairs(self):
        assert normalize_qs([["a", 1], ("b", "c")]) == [("a", "1"), ("b", "c")]

    def test_string(self):
        assert normalize_qs("a=1&b=c") == [("a", "1"), ("b", "c")]

    def test_scalar_becomes_key_with_empty_value(self):
        assert normalize_qs(123) == [("123", "")]

    def test_list_values_repeat_key(self):
        assert normalize_qs({"a": [1, 2]}) == [("a", "1"), ("a", "2")]

    def test_bool_and_none_values(self):
        assert normalize_qs({"t": True, "n": None}) == [("t", "true"), ("n", "")]

    def test_none_is_empty(self):
        assert normalize_qs(None) == []

    def test_bad_pair_rejected(self):
        with pytest.raises(RequestOptionsError):
            normalize_qs([("a", 1, 2)])

    def test_unsupported_type_rejected(self):
        with pytest.raises(RequestOptionsError):
            normalize_qs(object())


class TestEncodingSpec:
    def test_absent_defaults_to_text(self):
        assert EncodingSpec.parse(None) == EncodingSpec("text", "text")

    def test_string_sets_both_sides(self):
        assert EncodingSpec.parse("json") == EncodingSpec("json", "json")

    def test_mapping_sides_default_independently(self):
        assert EncodingSpec.parse({"req": "json"}) == EncodingSpec("json", "text")
        assert EncodingSpec.parse({"res": "raw"}) == EncodingSpec("text", "raw")

    def test_unknown_mapping_key_rejected(self):
        with pytest.raises(RequestOptionsError):
            EncodingSpec.parse({"request": "json"})


class TestRequestOptions:
    def test_defaults(self):
        opts = RequestOptions.parse(None)
        assert opts.method == "GET"
        assert opts.redirect is False
        assert opts.compress is True
        assert opts.timeout is None
        assert opts.encoding == EncodingSpec()
        assert opts.qs == []

    def test_method_is_upper_cased(self):
        assert RequestOptions.parse({"method": "post"}).method == "POST"

    def test_shapes_are_normalized(self):
        opts = RequestOptions.parse({"encoding": {"req": "json"}, "qs": "a=1", "headers": {"x-n": 1}})
        assert opts.encoding == EncodingSpec("json", "text")
        assert opts.qs == [("a", "1")]
        assert opts.headers == {"x-n": "1"}

    def test_unknown_option_rejected(self):
        with pytest.raises(RequestOptionsError) as exc_info:
            RequestOptions.parse({"bogus": 1})
        assert "bogus" in exc_info.value.fields

    def test_non_mapping_rejected(self):
        with pytest.raises(RequestOptionsError):
            RequestOptions.parse("method=get")

    def test_instance_passes_through(self):
        opts = RequestOptions(method="PUT")
        assert RequestOptions.parse(opts) is opts


# ── encoding ───────────────────────────────────────────────────────────────

def _streamed(response: httpx.Response) -> httpx.Response:
    response.request = httpx.Request("GET", "http://svc/x")
    return response


class TestEncodeBody:
    def test_json_sets_content_type_and_serializes(self):
        body, headers = encode_body(EncodingSpec("json", "text"), {"data": "test"}, {})
        assert json.loads(body) == {"data": "test"}
        assert headers["content-type"] == "application/json"

    def test_json_keeps_existing_content_type(self):
        _, headers = encode_body(
            EncodingSpec("json", "text"), {"a": 1}, {"Content-Type": "application/vnd+json"}
        )
        assert headers == {"Content-Type": "application/vnd+json"}

    def test_text_leaves_body_untouched(self):
        original = {"x-a": "1"}
        body, headers = encode_body(EncodingSpec(), "foo=bar", original)
        assert body == "foo=bar"
        assert headers == original
        assert headers is not original


class TestDecodeBody:
    @pytest.mark.asyncio
    async def test_json(self):
        res = _streamed(httpx.Response(200, json={"success": True}))
        assert await decode_body(EncodingSpec(res="json"), res) == {"success": True}

    @pytest.mark.asyncio
    async def test_text(self):
        res = _streamed(httpx.Response(200, text="<test />"))
        assert await decode_body(EncodingSpec(), res) == "<test />"

    @pytest.mark.asyncio
    async def test_unsupported_falls_back_to_bytes(self):
        res = _streamed(httpx.Response(200, text="<test />"))
        body = await decode_body(EncodingSpec(res="xml"), res)
        assert isinstance(body, bytes)
        assert body.decode("utf-8") == "<test />"

    @pytest.mark.asyncio
    async def test_raw_returns_open_response(self):
        res = _streamed(httpx.Response(200, content=b"abc"))
        body = await decode_body(EncodingSpec(res="raw"), res)
        assert body is res
        assert b"".join([chunk async for chunk in body.aiter_bytes()]) == b"abc"

    @pytest.mark.asyncio
    async def test_malformed_json_raises_decode_error(self):
        res = _streamed(httpx.Response(200, text="test"))
        with pytest.raises(ResponseDecodeError, match="invalid json response body at http://svc/x"):
            await decode_body(EncodingSpec(res="json"), res)

    def test_header_map_is_lower_cased(self):
        res = httpx.Response(200, headers={"X-Thing": "1", "Content-Type": "text/plain"})
        assert header_map(res) == {"x-thing": "1", "content-type": "text/plain"}


# ── completion ─────────────────────────────────────────────────────────────

async def _ok():
    return 123


async def _fail():
    raise ValueError("FOO")


class TestCompletion:
    @pytest.mark.asyncio
    async def test_awaitable_resolves(self):
        assert await complete(_ok()) == 123

    @pytest.mark.asyncio
    async def test_awaitable_rejects(self):
        with pytest.raises(ValueError, match="FOO"):
            await complete(_fail())

    @pytest.mark.asyncio
    async def test_callback_receives_result(self):
        calls = []
        task = complete(_ok(), lambda err, res: calls.append((err, res)))
        assert isinstance(task, asyncio.Task)
        await task
        assert calls == [(None, 123)]

    @pytest.mark.asyncio
    async def test_callback_receives_error_and_task_does_not_fail(self):
        calls = []
        task = complete(_fail(), lambda err, res: calls.append((err, res)))
        await task
        assert len(calls) == 1
        err, res = calls[0]
        assert isinstance(err, ValueError)
        assert res is None
        assert task.exception() is None

    @pytest.mark.asyncio
    async def test_async_callback_is_awaited(self):
        calls = []

        async def on_done(err, res):
            await asyncio.sleep(0)
            calls.append(res)

        await complete(_ok(), on_done)
        assert calls == [123]

    def test_callback_without_running_loop_raises(self):
        coro = _ok()
        with pytest.raises(RuntimeError):
            complete(coro, lambda err, res: None)

    def test_split_callback(self):
        def cb(err, res):
            return None

        assert split_callback(cb, None) == (None, cb)
        assert split_callback({"a": 1}, cb) == ({"a": 1}, cb)
        assert split_callback(None, None) == (None, None)
