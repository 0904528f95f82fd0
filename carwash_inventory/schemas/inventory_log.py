from datetime import datetime

from pydantic import BaseModel, Field

# Stock columns are INTEGER, 32-bit on PostgreSQL
MAX_QUANTITY = 2_147_483_647


class InventoryAdjust(BaseModel):
    product_id: int
    change: int = Field(ge=-MAX_QUANTITY, le=MAX_QUANTITY)  # positive to add, negative to remove
    reason: str = Field(min_length=1)
    ref_table: str | None = None
    ref_id: int | None = None
    created_by: int | None = None


class LedgerSnapshot(BaseModel):
    previous_stock: int | None = None
    new_stock: int | None = None
    unit_cost: float = 0.0
    total_cost_impact: float = 0.0


class InventoryLogOut(BaseModel):
    id: int
    product_id: int
    change: int
    reason: str
    ref_table: str | None
    ref_id: int | None
    created_by: int | None
    previous_stock: int
    new_stock: int
    unit_cost: float
    total_cost: float
    snapshot: LedgerSnapshot = Field(serialization_alias="metadata")
    created_at: datetime

    model_config = {"from_attributes": True}


class InventoryLogRow(BaseModel):
    """Ledger entry joined with product and creator names for listings."""

    id: int
    product_id: int
    product: str
    change: int
    reason: str
    ref_table: str | None
    ref_id: int | None
    created_by: int | None
    created_by_name: str
    created_at: datetime
    metadata: LedgerSnapshot


class InventoryAdjustResult(BaseModel):
    status: str = "success"
    message: str
    log: InventoryLogOut
