"""MindCanvas - AI-assisted mind-map canvas backend.

Invariants:
    - Package root contains no executable code beyond the version string
"""

__version__ = "1.0.0"
