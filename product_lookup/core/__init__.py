"""
==============================================================================
Core Package
==============================================================================

Core infrastructure for the application.

This package provides:
- Exception hierarchy with consistent error responses
- Exception factory functions for common error scenarios
- FastAPI dependencies giving routes access to the lookup session

Usage:
------
    from product_lookup.core import exceptions
    raise exceptions.engine_not_ready()

==============================================================================
"""

from .exceptions import (
    AppException,
    AcquisitionError,
    DatasetInvalidError,
    DatasetQueryError,
    EngineNotReadyError,
    InvalidCodeError,
    register_exception_handlers,
)

__all__ = [
    "AppException",
    "AcquisitionError",
    "DatasetInvalidError",
    "DatasetQueryError",
    "EngineNotReadyError",
    "InvalidCodeError",
    "register_exception_handlers",
]
