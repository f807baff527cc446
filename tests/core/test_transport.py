"""Tests for the httpx-backed transport, driven through httpx.MockTransport."""

import json

import httpx
import pytest

from gemini_proxy.core.executor import HttpxTransport, ResilientExecutor
from gemini_proxy.core.outcomes import ErrorKind
from gemini_proxy.core.policy import RetryPolicy
from tests.fakes import RecordingSleep


@pytest.mark.asyncio
async def test_transport_posts_payload_and_headers(call_request):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["host"] = request.url.host
        seen["key"] = request.url.params["key"]
        seen["content_type"] = request.headers["content-type"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"candidates": [{"text": "hi"}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        response = await HttpxTransport(client).send(call_request)

    assert response.status == 200
    assert json.loads(response.body) == {"candidates": [{"text": "hi"}]}
    assert seen["method"] == "POST"
    assert seen["host"] == "upstream.test"
    assert seen["key"] == "k"
    assert seen["content_type"] == "application/json"
    assert seen["body"] == {"contents": []}


@pytest.mark.asyncio
async def test_executor_over_mock_transport_retries_503(call_request):
    responses = iter([httpx.Response(503, text="busy"), httpx.Response(200, text="{}")])
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return next(responses)

    sleep = RecordingSleep()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        executor = ResilientExecutor(HttpxTransport(client), sleep=sleep)
        result = await executor.execute(call_request, RetryPolicy(max_attempts=3))

    assert result.ok is True
    assert len(calls) == 2
    assert len(sleep.delays) == 1


@pytest.mark.asyncio
async def test_executor_over_mock_transport_connect_error(call_request):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("name resolution failed", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        executor = ResilientExecutor(HttpxTransport(client), sleep=RecordingSleep())
        result = await executor.execute(call_request, RetryPolicy(max_attempts=2))

    assert result.error_kind is ErrorKind.RETRIES_EXHAUSTED
    assert result.message == "name resolution failed"
    assert result.attempts == 2
