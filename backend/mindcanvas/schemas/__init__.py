"""Pydantic Schemas - request/response validation for API endpoints.

Invariants:
    - Schemas validate at the system boundary (user input, AI tool payloads)
    - Schemas are API contracts; models/ is persistence
"""
