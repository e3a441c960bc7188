#!/usr/bin/env python3
"""
Test the DeepSeek engine against a mocked HTTP transport
"""

import json

import httpx
import pytest

from engine import EngineFactory, UpstreamError
from engine.implementations import DeepSeekEngine

API_URL = "https://api.example.com/v1/chat/completions"
CONFIG = {"api_key": "test-key", "api_url": API_URL, "model": "deepseek-reasoner"}


def _engine(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DeepSeekEngine(CONFIG, client=client)


@pytest.mark.asyncio
async def test_think_sends_chat_request():
    """Test the request shape and bearer auth"""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "4"}}]})

    engine = _engine(handler)
    try:
        assert await engine.think("2+2") == "4"
    finally:
        await engine.close()

    assert seen["url"] == API_URL
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"] == {
        "model": "deepseek-reasoner",
        "messages": [{"role": "user", "content": "2+2"}],
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 500, 503])
async def test_http_errors_raise_upstream_error(status):
    """Test non-2xx responses become UpstreamError"""
    engine = _engine(lambda request: httpx.Response(status, json={"error": "nope"}))

    with pytest.raises(UpstreamError, match="Failed to process thinking request"):
        await engine.think("2+2")
    await engine.close()


@pytest.mark.asyncio
async def test_network_failure_raises_upstream_error():
    """Test connection failures become UpstreamError"""
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    engine = _engine(handler)

    with pytest.raises(UpstreamError):
        await engine.think("2+2")
    await engine.close()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": None}}]},
        {"choices": "oops"},
        ["not", "an", "object"],
    ],
)
async def test_unexpected_shapes_raise_upstream_error(payload):
    """Test any other response shape is treated as an upstream failure"""
    engine = _engine(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(UpstreamError):
        await engine.think("2+2")
    await engine.close()


@pytest.mark.asyncio
async def test_non_json_body_raises_upstream_error():
    """Test a non-JSON success body is an upstream failure"""
    engine = _engine(lambda request: httpx.Response(200, text="<html>gateway</html>"))

    with pytest.raises(UpstreamError):
        await engine.think("2+2")
    await engine.close()


def test_factory_creates_deepseek_engine():
    """Test the factory knows the deepseek engine and rejects others"""
    engine = EngineFactory.create_engine("DeepSeek", CONFIG)
    assert isinstance(engine, DeepSeekEngine)
    assert engine.model == "deepseek-reasoner"

    with pytest.raises(ValueError):
        EngineFactory.create_engine("anthropic", CONFIG)
