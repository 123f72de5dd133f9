"""
==============================================================================
API Package
==============================================================================

REST API routers for the product lookup service.

==============================================================================
"""

from .router import api_router

__all__ = ["api_router"]
