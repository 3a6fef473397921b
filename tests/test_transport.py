"""
Tests for the httpx-backed transport, using httpx.MockTransport.
"""
from __future__ import annotations

import json

import httpx

from deribit_desk.deribit.base_client import DeribitErrorCode, HttpTransport

URL = "https://test.deribit.com/api/v2/public/test"


def _transport(handler) -> HttpTransport:
    return HttpTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))


class TestHttpTransport:

    def test_posts_json_with_content_type(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["content_type"] = request.headers.get("content-type")
            seen["authorization"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, text='{"result": {"version": "1"}}')

        response = _transport(handler).send(URL, {"jsonrpc": "2.0", "id": 1, "method": "public/test", "params": {}})

        assert seen["method"] == "POST"
        assert seen["content_type"] == "application/json"
        assert seen["authorization"] is None
        assert seen["body"]["method"] == "public/test"
        assert response.body == '{"result": {"version": "1"}}'
        assert response.status_code == 200
        assert not response.is_empty

    def test_bearer_token_header(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["authorization"] = request.headers.get("authorization")
            return httpx.Response(200, text="{}")

        _transport(handler).send(URL, {}, bearer_token="tok123")

        assert seen["authorization"] == "Bearer tok123"

    def test_error_status_still_returns_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, text='{"error": {"message": "Invalid params"}}')

        response = _transport(handler).send(URL, {})

        assert response.status_code == 400
        assert response.is_http_error
        assert "Invalid params" in response.body

    def test_connection_error_returns_empty_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        response = _transport(handler).send(URL, {})

        assert response.is_empty
        assert response.status_code is None
        assert response.error_code == DeribitErrorCode.NETWORK
        assert "connection refused" in response.error

    def test_timeout_returns_empty_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        response = _transport(handler).send(URL, {})

        assert response.is_empty
        assert response.error_code == DeribitErrorCode.TIMEOUT

    def test_context_manager_closes_client(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        with HttpTransport(client=client):
            pass

        assert client.is_closed
