"""Services Layer - AI collaborators, PNG rendering and the canvas workspace.

Invariants:
    - Anthropic calls go through ResilientAnthropicClient with forced tool use
    - CanvasWorkspace is the only service that mutates canvas state
"""
