"""
==============================================================================
Product Resolution Endpoints
==============================================================================

Endpoints for resolving scanned codes against the loaded dataset.

A code that matches nothing is not an error: the response carries
``found: false`` with status 200.

==============================================================================
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from product_lookup.catalog import ResolutionEngine, normalize_code
from product_lookup.core.dependencies import get_engine, get_lookup_session
from product_lookup.services import LookupSession


router = APIRouter(prefix="/products", tags=["Products"])


class ProductController:
    """Controller for product resolution operations."""

    def __init__(self, engine: ResolutionEngine):
        self._engine = engine

    def resolve(self, code: str, vat_required: Optional[bool]) -> dict:
        """Resolve a scanned code."""
        item = self._engine.resolve(code, vat_required=vat_required)

        return {
            "success": True,
            "code": normalize_code(code),
            "found": item is not None,
            "item": item.model_dump() if item is not None else None,
        }


@router.get("/resolve")
async def resolve_product(
    code: str = Query(..., description="Scanned barcode, SKU or GTIN"),
    vat_required: Optional[bool] = Query(None, description="Include VAT in the price"),
    engine: ResolutionEngine = Depends(get_engine)
):
    """Resolve a scanned code into a priced product."""
    controller = ProductController(engine)
    return controller.resolve(code, vat_required)


@router.get("/stats")
async def get_dataset_stats(session: LookupSession = Depends(get_lookup_session)):
    """Get loaded dataset statistics."""
    return {
        "success": True,
        "dataset": session.describe()
    }
