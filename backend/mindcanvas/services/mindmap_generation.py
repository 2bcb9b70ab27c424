"""Mind-Map Generation - keyword/brief -> flat root/branch/leaf payload via Claude.

Invariants:
    - Returns GeneratedMindmap or raises GenerationError; never a partial graph
    - Output shape is validated by pydantic (schemas/graph.py) before it
      reaches the layout engine
    - AnthropicAPIError from the client is re-raised as GenerationError so the
      caller handles one failure type

Design Decisions:
    - Forced tool use (emit_mindmap) instead of JSON-in-text parsing
    - Prompt asks for 4 branches, 2-4 leaves each, ids root/b1/b1-l1
"""

import logging

from pydantic import ValidationError

from mindcanvas.core.errors import (
    AnthropicAPIError, ErrorContext, GenerationError, GenerationUnavailableError,
)
from mindcanvas.core.layout_engine import (
    GeneratedEdge, GeneratedMindmap, GeneratedNode,
)
from mindcanvas.core.repository_protocols import MindmapBrief
from mindcanvas.infrastructure.anthropic_client import ResilientAnthropicClient
from mindcanvas.schemas.graph import GenerationPayload
from mindcanvas.services.define_mindmap_tools import (
    TOOL_EMIT_MINDMAP, extract_tool_input, forced,
)

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = """\
You are a knowledge architect and systems thinker. Break the topic into a \
mind map that is MECE: sibling branches never overlap in meaning and together \
cover the important aspects of the topic.

Rules:
- Exactly one root node whose label is the topic.
- Exactly 4 branch nodes, each connected from the root.
- Each branch has {min_leaves}-{max_leaves} leaf nodes connected from it.
- Leaf labels are short but specific: "Facebook Ads (eat-clean audience)", \
not "Facebook".
- Only use well-established knowledge; do not invent terminology.
- Ids are unique: root, b1, b2, b1-l1, b1-l2, ...
- Edge ids follow e-<source>-<target>.

Always answer by calling the emit_mindmap tool."""


def build_user_message(brief: MindmapBrief) -> str:
    lines = [f'Create a mind map for: "{brief.topic}"']
    if brief.goal and brief.goal.strip():
        lines.append(
            f'Goal: "{brief.goal.strip()}". Pick the branches that serve '
            "this goal and drop those that do not.",
        )
    else:
        lines.append("No specific goal: build a general overview.")
    if brief.audience and brief.audience.strip():
        lines.append(f'Audience: "{brief.audience.strip()}".')
    return "\n".join(lines)


def to_generated_mindmap(payload: GenerationPayload) -> GeneratedMindmap:
    return GeneratedMindmap(
        nodes=tuple(
            GeneratedNode(n.id, n.type, n.label) for n in payload.nodes
        ),
        edges=tuple(
            GeneratedEdge(e.id, e.source, e.target) for e in payload.edges
        ),
    )


class ClaudeMindmapGenerator:
    """MindmapGenerator backed by the resilient Anthropic client."""

    def __init__(
        self, client: ResilientAnthropicClient, model: str, max_tokens: int = 4096,
    ):
        self._client = client
        self._model = model
        self._max_tokens = max_tokens

    async def generate(self, brief: MindmapBrief) -> GeneratedMindmap:
        max_leaves = max(2, min(4, brief.depth + 1))
        system = _SYSTEM_PROMPT.format(min_leaves=2, max_leaves=max_leaves)
        try:
            response = await self._client.create_message(
                model=self._model,
                max_tokens=self._max_tokens,
                system=system,
                messages=[{"role": "user", "content": build_user_message(brief)}],
                tools=[TOOL_EMIT_MINDMAP],
                tool_choice=forced(TOOL_EMIT_MINDMAP),
            )
        except AnthropicAPIError as e:
            logger.warning(f"Mind-map generation call failed: {e.message}")
            raise GenerationUnavailableError(
                "Could not reach the AI service",
                ErrorContext(user_message="AI connection error, try again"),
            )

        tool_input = extract_tool_input(response, TOOL_EMIT_MINDMAP["name"])
        if tool_input is None:
            raise GenerationError("AI response did not contain a mind map")
        try:
            payload = GenerationPayload.model_validate(tool_input)
        except ValidationError as e:
            logger.warning(f"Malformed mind-map payload: {e.error_count()} error(s)")
            raise GenerationError("AI returned a malformed mind map")
        return to_generated_mindmap(payload)
