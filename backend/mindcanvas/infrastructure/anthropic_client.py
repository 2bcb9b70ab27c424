"""Resilient Anthropic Client - one-shot Messages calls with retry and error mapping.

Invariants:
    - 429 waits for Retry-After when given, otherwise for the backoff delay
    - Connection errors, 5xx and 529 Overloaded are retried up to max_retries
    - Timeouts and other 4xx fail on the first occurrence
    - Callers only ever see AnthropicAPIError (core/errors.py)

Design Decisions:
    - SDK retries disabled (max_retries=0): RetryPolicy is the single source
    - Jitter in [0.75, 1.25] of the delay so concurrent canvases spread out
"""

import asyncio
import logging
import random
from dataclasses import dataclass

import anthropic
from anthropic import (
    APIConnectionError, APIError, APIStatusError, APITimeoutError,
    InternalServerError, RateLimitError,
)

from mindcanvas.core.errors import AnthropicAPIError, ErrorContext

logger = logging.getLogger(__name__)

_OVERLOADED = 529


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 30_000

    def delay_ms(self, attempt: int, rng: random.Random | None = None) -> int:
        """Exponential delay for attempt (0-based), capped, with jitter."""
        capped = min(self.max_delay_ms, self.base_delay_ms * 2 ** attempt)
        return int(capped * (rng or random).uniform(0.75, 1.25))  # nosec B311

    def exhausted(self, attempt: int) -> bool:
        return attempt >= self.max_retries


def retry_after_ms(error: APIStatusError) -> int | None:
    """Retry-After header in milliseconds, when the server sent whole seconds."""
    response = getattr(error, "response", None)
    value = response.headers.get("retry-after") if response is not None else None
    return int(value) * 1000 if value and value.isdigit() else None


def classify(error: APIError) -> str:
    """rate_limit | transient | timeout | client_error."""
    if isinstance(error, RateLimitError):
        return "rate_limit"
    if isinstance(error, APITimeoutError):
        return "timeout"
    if isinstance(error, (APIConnectionError, InternalServerError)):
        return "transient"
    if isinstance(error, APIStatusError) and error.status_code == _OVERLOADED:
        return "transient"
    return "client_error"


class ResilientAnthropicClient:
    """AsyncAnthropic behind a RetryPolicy; shared by generation and enrichment."""

    def __init__(
        self,
        api_key: str,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: int = 60,
    ):
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout_seconds, max_retries=0,
        )
        self.policy = RetryPolicy(max_retries, base_delay_ms, max_delay_ms)

    async def create_message(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list,
        tools: list | None = None,
        tool_choice: dict | None = None,
        context: ErrorContext | None = None,
    ):
        """messages.create with the retry policy applied."""
        request = {
            "model": model, "max_tokens": max_tokens,
            "system": system, "messages": messages,
        }
        if tools:
            request["tools"] = tools
        if tool_choice:
            request["tool_choice"] = tool_choice

        attempt = 0
        while True:
            try:
                response = await self.client.messages.create(**request)
            except APIError as e:
                kind = classify(e)
                await self._wait_or_raise(e, kind, attempt, context)
                attempt += 1
                continue
            logger.info(
                "Anthropic API success",
                extra={
                    "attempt": attempt + 1,
                    "input_tokens": response.usage.input_tokens,
                    "output_tokens": response.usage.output_tokens,
                },
            )
            return response

    async def _wait_or_raise(
        self, error: APIError, kind: str, attempt: int, context: ErrorContext | None,
    ) -> None:
        if kind in ("timeout", "client_error"):
            message = "API timeout" if kind == "timeout" else str(error)
            raise AnthropicAPIError(message, kind, context=context)

        hinted = retry_after_ms(error) if kind == "rate_limit" else None
        if self.policy.exhausted(attempt):
            if kind == "rate_limit":
                raise AnthropicAPIError(
                    "Rate limit exceeded after retries", kind,
                    retry_after_ms=hinted, context=context,
                )
            raise AnthropicAPIError(
                f"Transient failure after {self.policy.max_retries} retries: {error}",
                "connection_error", context=context,
            )
        delay = hinted or self.policy.delay_ms(attempt)
        logger.warning(
            f"Anthropic {kind} error, retrying in {delay}ms: {error}",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay / 1000)
