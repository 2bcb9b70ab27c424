"""Infrastructure Layer - database, Anthropic client, logging, project store.

Invariants:
    - Infrastructure imports only core/ types and errors, never services/
    - All external calls wrapped with retry/timeout/error mapping
"""
