"""Tests for the connector backend gateway and the chat-completions provider."""

import json

import httpx
import pytest

from action_kernel.connectors.gateway import BackendGateway
from action_kernel.errors import ProviderError
from action_kernel.providers.llm import ChatCompletionsProvider, extract_json_object


def _make_gateway(handler) -> BackendGateway:
    return BackendGateway("http://backend.test/", transport=httpx.MockTransport(handler))


def _make_provider(handler) -> ChatCompletionsProvider:
    return ChatCompletionsProvider(
        "http://llm.test/v1", "sk-test", "test-model", transport=httpx.MockTransport(handler)
    )


class TestBackendGateway:
    async def test_success_payload(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "data": {"sid": "SM1"}})

        result = await _make_gateway(handler).post("/api/telephony/sms", {"to": "+1555", "message": "hi"})

        assert result.success is True
        assert result.data == {"sid": "SM1"}
        assert seen["url"] == "http://backend.test/api/telephony/sms"
        assert seen["body"] == {"to": "+1555", "message": "hi"}

    async def test_backend_reported_failure(self):
        result = await _make_gateway(
            lambda r: httpx.Response(200, json={"success": False, "error": "Invalid number"})
        ).post("/api/telephony/sms", {})
        assert result.success is False
        assert result.error == "Invalid number"

    async def test_requires_setup(self):
        result = await _make_gateway(
            lambda r: httpx.Response(200, json={"requiresSetup": True})
        ).post("/api/connectors/gmail/send", {})
        assert result.success is False
        assert result.error == "Connector not configured"

    async def test_http_errors(self):
        unauthorized = await _make_gateway(lambda r: httpx.Response(401)).get("/api/financial/news")
        assert "401" in unauthorized.error

        server_error = await _make_gateway(lambda r: httpx.Response(503)).get("/api/financial/news")
        assert server_error.success is False
        assert "503" in server_error.error

    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        result = await _make_gateway(handler).post("/api/telephony/call", {})
        assert result.success is False
        assert "Could not reach" in result.error

    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        result = await _make_gateway(handler).post("/api/telephony/call", {})
        assert result.success is False
        assert "timed out" in result.error


class TestChatCompletionsProvider:
    async def test_returns_message_content(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "choices": [{"message": {"role": "assistant", "content": '{"intent": "call"}'}}]
            })

        reply = await _make_provider(handler).send_message([{"role": "user", "content": "hi"}])

        assert reply == '{"intent": "call"}'
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "test-model"

    async def test_http_error_is_provider_error(self):
        with pytest.raises(ProviderError):
            await _make_provider(lambda r: httpx.Response(429)).send_message([])

    async def test_malformed_response(self):
        with pytest.raises(ProviderError):
            await _make_provider(lambda r: httpx.Response(200, json={"choices": []})).send_message([])


class TestExtractJsonObject:
    def test_embedded_object(self):
        assert extract_json_object('Here you go: {"a": {"b": 1}} done') == {"a": {"b": 1}}

    def test_skips_invalid_braces(self):
        assert extract_json_object('{oops} then {"ok": true}') == {"ok": True}

    def test_no_object(self):
        with pytest.raises(ProviderError):
            extract_json_object("no json here")
