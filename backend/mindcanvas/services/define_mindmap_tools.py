"""Mind-Map Tool Schemas - Anthropic Tool Use format for structured AI output.

Invariants:
    - emit_mindmap returns exactly the flat {nodes, edges} generation payload
    - emit_deep_dive returns {angles, headlines, keywords} string lists
    - Both tools are forced via tool_choice; free text is never parsed

Design Decisions:
    - node type as enum in schema: the model cannot invent roles the layout
      engine does not know
"""

TOOL_EMIT_MINDMAP = {
    "name": "emit_mindmap",
    "description": (
        "Returns the complete mind map as a flat list of nodes and edges. "
        "Exactly one node has type 'root'. Branch nodes connect from the "
        "root; leaf nodes connect from their branch."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "nodes": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "string"},
                        "label": {"type": "string"},
                        "type": {
                            "type": "string",
                            "enum": ["root", "branch", "leaf"],
                        },
                    },
                    "required": ["id", "label", "type"],
                },
            },
            "edges": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "string"},
                        "source": {"type": "string"},
                        "target": {"type": "string"},
                    },
                    "required": ["id", "source", "target"],
                },
            },
        },
        "required": ["nodes", "edges"],
    },
}

TOOL_EMIT_DEEP_DIVE = {
    "name": "emit_deep_dive",
    "description": (
        "Returns content ideas for one mind-map node: 5 content angles, "
        "3 headlines, 5 related keywords."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "angles": {"type": "array", "items": {"type": "string"}},
            "headlines": {"type": "array", "items": {"type": "string"}},
            "keywords": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["angles", "headlines", "keywords"],
    },
}


def forced(tool: dict) -> dict:
    """tool_choice value that forces the given tool."""
    return {"type": "tool", "name": tool["name"]}


def extract_tool_input(response, tool_name: str) -> dict | None:
    """Input of the first tool_use block calling tool_name, if any."""
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "tool_use" and block.name == tool_name:
            return block.input
    return None
