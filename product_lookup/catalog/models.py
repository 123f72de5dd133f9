"""
==============================================================================
Product Models Module
==============================================================================

Pydantic models for dataset rows and resolved items.

==============================================================================
"""

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .codes import parse_integer_or_default, parse_numeric_or_default


class ProductRecord(BaseModel):
    """
    One row of the product master table.

    Numeric fields hold None when the stored value is absent or cannot be
    parsed; they never carry raw strings.

    Attributes:
        sku: Catalog key
        barcode: Legacy numeric barcode
        gtin: Long-form GTIN as stored (trimmed)
        name_en: Display name
        item_price: Base price, VAT-exclusive
        vat: VAT percentage
    """

    model_config = ConfigDict(frozen=True)

    sku: Optional[int] = None
    barcode: Optional[Union[int, float]] = None
    gtin: Optional[str] = None
    name_en: str = ""
    item_price: Optional[float] = None
    vat: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ProductRecord":
        """Build a record from a raw row, degrading malformed values to None."""
        gtin = row.get("gtin")
        gtin = str(gtin).strip() if gtin is not None else None

        item_price = parse_numeric_or_default(row.get("item_price"))
        vat = parse_numeric_or_default(row.get("vat"))
        name = row.get("name_en")

        return cls(
            sku=parse_integer_or_default(row.get("sku")),
            barcode=parse_numeric_or_default(row.get("barcode")),
            gtin=gtin or None,
            name_en=str(name) if name is not None else "",
            item_price=float(item_price) if item_price is not None else None,
            vat=float(vat) if vat is not None else None,
        )


class ResolvedItem(BaseModel):
    """Priced product returned to callers of the resolution engine."""

    model_config = ConfigDict(frozen=True)

    sku: Optional[int] = Field(default=None, description="Catalog key")
    barcode: Optional[Union[int, float]] = Field(default=None, description="Normalized numeric barcode")
    gtin: str = Field(default="", description="String form of the normalized barcode")
    name_en: str = Field(default="", description="Display name")
    price: float = Field(default=0.0, description="Price, VAT-inclusive unless opted out")
    vat: float = Field(default=0.0, description="VAT percentage")
