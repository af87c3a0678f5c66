from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime

from crm_panel.models.product import ProductFilters, ProductFilterOptions


class InventoryRecord(BaseModel):
    """
    One inventory document per product, upserted by product id.
    """

    product_id: int
    cantidad: int = Field(..., ge=0)
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")


class InventoryChange(BaseModel):
    """
    A single pair of a batch commit.
    """

    product_id: int = Field(..., alias="productId")
    cantidad: int = Field(..., ge=0)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class InventoryBatchUpsert(BaseModel):
    """
    Request body of a batch commit; pairs are applied in order.
    """

    changes: List[InventoryChange]

    model_config = ConfigDict(extra="forbid")


class InventoryBatchResult(BaseModel):
    success: bool = True
    applied: List[int] = []


class InventoryRow(BaseModel):
    """
    A product joined with its quantity. Products without an inventory
    record report a quantity of 0.
    """

    id: int
    title: Optional[str] = None
    color: Optional[str] = None
    color_hex: str
    cantidad: int = 0


class InventoryListing(BaseModel):
    items: List[InventoryRow]
    filters: ProductFilterOptions
    current_filters: ProductFilters

    def quantities(self) -> dict:
        """Baseline quantities keyed by product id."""
        return {row.id: row.cantidad for row in self.items}
