"""
Application Exception Handling

AppException base class with FastAPI integration, plus the typed errors
raised by dataset acquisition and product resolution.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the entire API.

    Usage:
        raise AppException("Dataset unavailable", "ACQUISITION_FAILED", 503)

    Error Codes:
        Dataset:
            - ACQUISITION_FAILED (503)
            - DATASET_INVALID (503)
            - DATASET_QUERY_FAILED (500)

        Resolution:
            - INVALID_CODE (400)
            - ENGINE_NOT_READY (503)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "INVALID_CODE")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


class AcquisitionError(AppException):
    """Dataset bytes could not be obtained from cache or network."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: str = "ACQUISITION_FAILED"
    ):
        super().__init__(message, code, 503, details)


class DatasetInvalidError(AcquisitionError):
    """Acquired bytes do not open as a usable product dataset."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="DATASET_INVALID")


class InvalidCodeError(AppException):
    """Scanned code is empty or unusable."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INVALID_CODE", 400, details)


class EngineNotReadyError(AppException):
    """Resolution attempted before a dataset was opened."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "ENGINE_NOT_READY", 503, details)


class DatasetQueryError(AppException):
    """A lookup query against the opened dataset failed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "DATASET_QUERY_FAILED", 500, details)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    FastAPI exception handler for AppException.

    Converts AppException to consistent JSON error response.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def acquisition_failed(reason: str, url: Optional[str] = None) -> AcquisitionError:
    """Create dataset acquisition failure exception."""
    details = {"reason": reason}
    if url:
        details["url"] = url
    return AcquisitionError(f"Could not acquire product dataset: {reason}", details)


def dataset_invalid(reason: str) -> DatasetInvalidError:
    """Create invalid dataset exception."""
    return DatasetInvalidError(f"Product dataset is not usable: {reason}", {"reason": reason})


def invalid_code(raw: Any) -> InvalidCodeError:
    """Create invalid scanned code exception."""
    return InvalidCodeError("Scanned code is empty", {"code": "" if raw is None else str(raw)})


def engine_not_ready() -> EngineNotReadyError:
    """Create engine not ready exception."""
    return EngineNotReadyError("Product dataset has not been loaded yet")


def query_failed(column: str, reason: str) -> DatasetQueryError:
    """Create dataset query failure exception."""
    return DatasetQueryError(
        f"Lookup by {column} failed",
        {"column": column, "reason": reason}
    )
