"""
==============================================================================
Services Package - Session Layer
==============================================================================

Service classes wiring dataset acquisition to product resolution.

This package provides:
- LookupSession: Startup sequence and state of a lookup session
- SessionState: Startup states reported by health endpoints

    ┌─────────────────┐
    │   API Router    │
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │  LookupSession  │  ← Startup / lifecycle
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │ResolutionEngine │  ← Lookup + pricing
    └─────────────────┘

==============================================================================
"""

from .session_service import LookupSession, SessionState

__all__ = [
    "LookupSession",
    "SessionState",
]
