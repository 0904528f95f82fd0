from datetime import datetime

from pydantic import BaseModel, Field

from carwash_inventory.schemas.inventory_log import MAX_QUANTITY


class PurchaseItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0, le=MAX_QUANTITY)
    cost: float | None = Field(None, ge=0)  # defaults to the product's current cost


class PurchaseCreate(BaseModel):
    supplier_id: int | None = None
    notes: str = ""
    items: list[PurchaseItemCreate] = []


class PurchaseFromRequisition(BaseModel):
    requisition_id: int
    supplier_id: int | None = None
    notes: str | None = None
    # Empty means copy the requisition's items
    items: list[PurchaseItemCreate] = []


class PurchaseReceiveItem(BaseModel):
    product_id: int
    quantity: int = Field(gt=0, le=MAX_QUANTITY)
    cost: float | None = Field(None, ge=0)


class PurchaseReceive(BaseModel):
    items: list[PurchaseReceiveItem] = []
    received_by: int | None = None


class PurchaseItemOut(BaseModel):
    id: int
    purchase_id: int
    product_id: int
    product_name: str = ""
    quantity: int
    cost: float

    model_config = {"from_attributes": True}


class PurchaseOut(BaseModel):
    id: int
    supplier_id: int | None
    requisition_id: int | None
    notes: str
    created_by: int | None
    status: str
    received_by: int | None
    received_at: datetime | None
    items: list[PurchaseItemOut]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PurchaseCreated(BaseModel):
    message: str
    purchase: PurchaseOut
    items: list[PurchaseItemOut]


class PurchaseReceived(BaseModel):
    status: str = "success"
    message: str = "Purchase received successfully"
    purchase: PurchaseOut
