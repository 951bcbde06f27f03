"""Unit tests for single-request execution."""

import asyncio

import httpx
import pytest

from api_inspector.core.executor import (
    RequestExecutor,
    build_request_options,
    send_test_request,
)


@pytest.mark.unit
class TestBuildRequestOptions:

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "post"])
    def test_body_attached_for_body_methods(self, method):
        options = build_request_options(method, '{"a": 1}')
        assert options["content"] == '{"a": 1}'
        assert options["headers"] == {"Content-Type": "application/json"}

    @pytest.mark.parametrize("method", ["GET", "DELETE", "HEAD", "OPTIONS"])
    def test_body_dropped_for_other_methods(self, method):
        options = build_request_options(method, '{"a": 1}')
        assert "content" not in options
        assert options["headers"] == {"Content-Type": "application/json"}

    def test_empty_body_not_attached(self):
        assert "content" not in build_request_options("POST", "")
        assert "content" not in build_request_options("POST", None)


@pytest.mark.unit
class TestRequestExecutor:

    @pytest.mark.asyncio
    async def test_success_sample(self, make_client, ok_handler):
        async with make_client(ok_handler) as client:
            sample = await RequestExecutor(client).execute("http://testserver/api/ping", "GET")

        assert sample.success is True
        assert sample.status_code == 200
        assert sample.latency_ms >= 0
        assert sample.error is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [301, 404, 500, 503])
    async def test_non_2xx_is_failure(self, make_client, status):
        async with make_client(lambda request: httpx.Response(status)) as client:
            sample = await RequestExecutor(client).execute("http://testserver/x", "GET")

        assert sample.success is False
        assert sample.status_code == status

    @pytest.mark.asyncio
    async def test_connection_error_is_captured(self, make_client, refused_handler):
        async with make_client(refused_handler) as client:
            sample = await RequestExecutor(client).execute("http://testserver/x", "GET")

        assert sample.success is False
        assert sample.status_code is None
        assert "ConnectError" in sample.error
        assert sample.latency_ms > 0

    @pytest.mark.asyncio
    async def test_timeout_is_captured(self, make_client):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with make_client(handler) as client:
            sample = await RequestExecutor(client, timeout=0.5).execute("http://testserver/x", "GET")

        assert sample.success is False
        assert "ReadTimeout" in sample.error

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_captured(self, make_client):
        def handler(request):
            raise RuntimeError("boom")

        async with make_client(handler) as client:
            sample = await RequestExecutor(client).execute("http://testserver/x", "GET")

        assert sample.success is False
        assert sample.error == "RuntimeError: boom"

    @pytest.mark.asyncio
    async def test_post_sends_body_and_json_header(self, make_client):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["content"] = request.content
            seen["content_type"] = request.headers.get("content-type")
            return httpx.Response(201)

        async with make_client(handler) as client:
            sample = await RequestExecutor(client).execute("http://testserver/x", "post", '{"a": 1}')

        assert sample.success is True
        assert seen == {"method": "POST", "content": b'{"a": 1}', "content_type": "application/json"}

    @pytest.mark.asyncio
    async def test_get_never_sends_body(self, make_client):
        seen = {}

        def handler(request):
            seen["content"] = request.content
            return httpx.Response(200)

        async with make_client(handler) as client:
            await RequestExecutor(client).execute("http://testserver/x", "GET", '{"a": 1}')

        assert seen["content"] == b""

    @pytest.mark.asyncio
    async def test_per_request_timeout_is_applied(self, make_client):
        seen = {}

        def handler(request):
            seen["timeout"] = request.extensions.get("timeout")
            return httpx.Response(200)

        async with make_client(handler) as client:
            await RequestExecutor(client, timeout=10.0).execute("http://testserver/x", "GET")

        assert seen["timeout"]["read"] == 10.0

    @pytest.mark.asyncio
    async def test_latency_covers_slow_response(self, make_client):
        async def handler(request):
            await asyncio.sleep(0.05)
            return httpx.Response(200)

        async with make_client(handler) as client:
            sample = await RequestExecutor(client).execute("http://testserver/x", "GET")

        assert sample.latency_ms >= 40


@pytest.mark.unit
class TestSendTestRequest:

    @pytest.mark.asyncio
    async def test_json_response(self, make_client):
        def handler(request):
            return httpx.Response(200, json={"hello": "world"}, headers={"x-trace": "abc"})

        async with make_client(handler) as client:
            response = await send_test_request(client, "http://testserver/api/hello", "GET")

        data = response.to_dict()
        assert data["status"] == 200
        assert data["statusText"] == "OK"
        assert data["body"] == {"hello": "world"}
        assert data["headers"]["x-trace"] == "abc"
        assert "error" not in data

    @pytest.mark.asyncio
    async def test_text_response(self, make_client):
        def handler(request):
            return httpx.Response(404, text="not here")

        async with make_client(handler) as client:
            response = await send_test_request(client, "http://testserver/missing", "GET")

        assert response.status == 404
        assert response.status_text == "Not Found"
        assert response.body == "not here"

    @pytest.mark.asyncio
    async def test_invalid_json_falls_back_to_text(self, make_client):
        def handler(request):
            return httpx.Response(200, content=b"{oops", headers={"content-type": "application/json"})

        async with make_client(handler) as client:
            response = await send_test_request(client, "http://testserver/x", "GET")

        assert response.body == "{oops"

    @pytest.mark.asyncio
    async def test_transport_error_returns_error_response(self, make_client, refused_handler):
        async with make_client(refused_handler) as client:
            response = await send_test_request(client, "http://testserver/x", "GET")

        assert response.to_dict() == {
            "status": 0,
            "statusText": "Error",
            "headers": {},
            "body": None,
            "error": "Connection refused",
        }

    @pytest.mark.asyncio
    async def test_non_http_error_returns_error_response(self, make_client):
        def handler(request):
            raise OverflowError("connect(): port must be 0-65535.")

        async with make_client(handler) as client:
            response = await send_test_request(client, "http://localhost:99999/api/ping", "GET")

        assert response.status == 0
        assert response.status_text == "Error"
        assert response.headers == {}
        assert response.body is None
        assert response.error == "connect(): port must be 0-65535."

    @pytest.mark.asyncio
    async def test_shares_body_rules(self, make_client):
        seen = {}

        def handler(request):
            seen["content"] = request.content
            return httpx.Response(200)

        async with make_client(handler) as client:
            await send_test_request(client, "http://testserver/x", "patch", '{"b": 2}')
            patched = seen["content"]
            await send_test_request(client, "http://testserver/x", "delete", '{"b": 2}')

        assert patched == b'{"b": 2}'
        assert seen["content"] == b""
