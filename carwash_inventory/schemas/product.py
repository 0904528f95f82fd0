from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from carwash_inventory.schemas.inventory_log import MAX_QUANTITY


# --- Supplier schemas ---

class SupplierCreate(BaseModel):
    name: str = Field(min_length=1)
    contact: str = ""


class SupplierOut(BaseModel):
    id: int
    name: str
    contact: str
    created_at: datetime

    model_config = {"from_attributes": True}


# --- Product schemas ---

class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    supplier_id: int | None = None
    cost: float = Field(0.0, ge=0)
    price: float = Field(0.0, ge=0)
    stock: int = Field(0, ge=0, le=MAX_QUANTITY)  # booked to the ledger as INITIAL_STOCK
    reorder_level: int = Field(0, ge=0, le=MAX_QUANTITY)


class ProductUpdate(BaseModel):
    # stock is deliberately absent: it only moves through the ledger
    name: str | None = Field(None, min_length=1)
    description: str | None = None
    supplier_id: int | None = None
    cost: float | None = Field(None, ge=0)
    price: float | None = Field(None, ge=0)
    reorder_level: int | None = Field(None, ge=0, le=MAX_QUANTITY)

    @field_validator("name", "description", "cost", "price", "reorder_level")
    @classmethod
    def reject_null(cls, v):
        # Omit a field to leave it unchanged; these columns cannot be cleared
        if v is None:
            raise ValueError("may not be null")
        return v


class ProductOut(BaseModel):
    product_id: int
    name: str
    description: str
    supplier_id: int | None
    supplier_name: str | None = None
    cost: float
    price: float
    stock: int
    reorder_level: int
    archived: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class LowStockOut(BaseModel):
    product_id: int
    name: str
    stock: int
    reorder_level: int
    supplier_id: int | None
    supplier_name: str | None = None

    model_config = {"from_attributes": True}


class ReorderSuggestion(BaseModel):
    product_id: int
    product_name: str
    supplier_id: int | None
    supplier_name: str | None
    current_stock: int
    reorder_level: int
    suggested_qty: int
