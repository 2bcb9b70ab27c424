"""Node Enrichment - per-node "brainstorm" deep dive via Claude.

Invariants:
    - Returns DeepDive or raises EnrichmentError; graph state is never touched here
    - Lists are capped at 5 angles, 3 headlines, 5 keywords
"""

import logging

from pydantic import ValidationError

from mindcanvas.core.enrichment_panel import DeepDive
from mindcanvas.core.errors import AnthropicAPIError, EnrichmentError
from mindcanvas.infrastructure.anthropic_client import ResilientAnthropicClient
from mindcanvas.schemas.graph import DeepDivePayload
from mindcanvas.services.define_mindmap_tools import (
    TOOL_EMIT_DEEP_DIVE, extract_tool_input, forced,
)

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """\
You are a content strategist. The user wants to deep dive into one topic \
idea taken from a mind map.

Provide:
1. 5 unique content angles (different perspectives on the topic).
2. 3 catchy headlines or titles for articles or posts.
3. 5 related keywords or tags.

Always answer by calling the emit_deep_dive tool."""


class ClaudeNodeEnricher:
    """NodeEnricher backed by the resilient Anthropic client."""

    def __init__(
        self, client: ResilientAnthropicClient, model: str, max_tokens: int = 1024,
    ):
        self._client = client
        self._model = model
        self._max_tokens = max_tokens

    async def enrich(self, label: str) -> DeepDive:
        try:
            response = await self._client.create_message(
                model=self._model,
                max_tokens=self._max_tokens,
                system=_SYSTEM_PROMPT,
                messages=[{
                    "role": "user", "content": f'Deep dive topic: "{label}"',
                }],
                tools=[TOOL_EMIT_DEEP_DIVE],
                tool_choice=forced(TOOL_EMIT_DEEP_DIVE),
            )
        except AnthropicAPIError as e:
            logger.warning(f"Deep-dive call failed: {e.message}")
            raise EnrichmentError("Could not analyze this node")

        tool_input = extract_tool_input(response, TOOL_EMIT_DEEP_DIVE["name"])
        if tool_input is None:
            raise EnrichmentError("AI response did not contain a deep dive")
        try:
            payload = DeepDivePayload.model_validate(tool_input)
        except ValidationError:
            raise EnrichmentError("AI returned a malformed deep dive")
        return DeepDive(
            angles=tuple(payload.angles[:5]),
            headlines=tuple(payload.headlines[:3]),
            keywords=tuple(payload.keywords[:5]),
        )
