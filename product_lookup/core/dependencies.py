"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection giving routes access to the lookup session.

The session is created by the application factory and stored on
``app.state.lookup_session``; routes never touch module-level globals.

Usage:
------
    @router.get("/resolve")
    async def resolve(engine: ResolutionEngine = Depends(get_engine)):
        ...

==============================================================================
"""

from __future__ import annotations

from fastapi import Depends, Request

from product_lookup.catalog import ResolutionEngine
from product_lookup.services import LookupSession


def get_lookup_session(request: Request) -> LookupSession:
    """Return the session owned by the running application."""
    return request.app.state.lookup_session


def get_engine(session: LookupSession = Depends(get_lookup_session)) -> ResolutionEngine:
    """
    Return the session's resolution engine.

    Readiness is not checked here; ``resolve`` raises EngineNotReadyError
    itself when the dataset is not loaded.
    """
    return session.engine
