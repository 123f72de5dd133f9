"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

==============================================================================
"""

from fastapi import APIRouter, Depends

from product_lookup.core.dependencies import get_lookup_session
from product_lookup.services import LookupSession, SessionState


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, session: LookupSession):
        self._session = session

    def check_dataset(self) -> dict:
        """Check dataset status."""
        engine = self._session.engine
        if engine.is_ready:
            return {"status": "healthy", "products": engine.product_count}
        if self._session.state is SessionState.FAILED:
            return {"status": "failed", "products": 0}
        return {"status": "not_loaded", "products": 0}

    def get_health(self) -> dict:
        """Get full health status."""
        dataset_info = self.check_dataset()

        overall = "healthy" if dataset_info["status"] == "healthy" else "degraded"

        return {
            "status": overall,
            "components": {
                "api": "healthy",
                "dataset": dataset_info["status"],
            },
            "details": {
                "session_state": self._session.state.value,
                "products_loaded": dataset_info["products"],
            }
        }


@router.get("")
async def health_check(session: LookupSession = Depends(get_lookup_session)):
    """
    Health check endpoint.

    Returns system status including API and dataset.
    """
    controller = HealthController(session)
    return controller.get_health()


@router.get("/ready")
async def readiness_check(session: LookupSession = Depends(get_lookup_session)):
    """Readiness check: true once the dataset is loaded."""
    return {"ready": session.engine.is_ready}


@router.get("/live")
async def liveness_check():
    """Liveness check for container orchestration."""
    return {"alive": True}
