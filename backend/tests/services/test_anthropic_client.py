"""Resilient Anthropic Client - verifies retry policy and error mapping.

Tests:
    - Transient failures retried up to max_retries, then AnthropicAPIError
    - Client errors (4xx) fail immediately
    - Backoff stays within the jitter band and the max delay
"""

import httpx
import pytest
from anthropic import APIConnectionError, APITimeoutError, BadRequestError

from mindcanvas.core.errors import AnthropicAPIError
from mindcanvas.infrastructure.anthropic_client import (
    ResilientAnthropicClient, RetryPolicy, classify,
)

from tests.services.fakes import tool_use_message

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


class _Messages:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def create(self, **kwargs):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(outcomes, max_retries=2):
    client = ResilientAnthropicClient(
        api_key="sk-ant-test", max_retries=max_retries, base_delay_ms=1, max_delay_ms=2,
    )
    client.client.messages = _Messages(outcomes)
    return client


def _kwargs():
    return {"model": "m", "max_tokens": 10, "system": "s", "messages": []}


async def test_retries_connection_errors_then_succeeds():
    ok = tool_use_message("emit_mindmap", {})
    client = _client([APIConnectionError(request=_REQUEST), ok])
    assert await client.create_message(**_kwargs()) is ok
    assert client.client.messages.calls == 2


async def test_gives_up_after_max_retries():
    client = _client([APIConnectionError(request=_REQUEST)] * 3, max_retries=2)
    with pytest.raises(AnthropicAPIError) as exc:
        await client.create_message(**_kwargs())
    assert exc.value.api_error_type == "connection_error"
    assert client.client.messages.calls == 3


async def test_client_error_is_not_retried():
    response = httpx.Response(400, request=_REQUEST)
    error = BadRequestError("bad", response=response, body=None)
    client = _client([error])
    with pytest.raises(AnthropicAPIError) as exc:
        await client.create_message(**_kwargs())
    assert exc.value.api_error_type == "client_error"
    assert client.client.messages.calls == 1


def test_backoff_bounded():
    policy = RetryPolicy(base_delay_ms=1000, max_delay_ms=30_000)
    assert 750 <= policy.delay_ms(0) <= 1250
    assert policy.delay_ms(10) <= 37_500


def test_timeout_is_not_transient():
    assert classify(APITimeoutError(request=_REQUEST)) == "timeout"
    assert classify(APIConnectionError(request=_REQUEST)) == "transient"
