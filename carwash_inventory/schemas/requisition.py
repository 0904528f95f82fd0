from datetime import datetime

from pydantic import BaseModel, Field

from carwash_inventory.schemas.inventory_log import MAX_QUANTITY


class RequisitionItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0, le=MAX_QUANTITY)


class RequisitionCreate(BaseModel):
    reason: str = ""
    items: list[RequisitionItemCreate] = []


class RequisitionDecision(BaseModel):
    action: str  # approve, reject


class RequisitionItemOut(BaseModel):
    id: int
    requisition_id: int
    product_id: int
    product_name: str = ""
    quantity: int

    model_config = {"from_attributes": True}


class RequisitionOut(BaseModel):
    id: int
    requested_by: int
    reason: str
    status: str
    items: list[RequisitionItemOut]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RequisitionCreated(BaseModel):
    message: str = "Requisition created"
    requisition: RequisitionOut
    items: list[RequisitionItemOut]


class RequisitionDecided(BaseModel):
    message: str
    requisition: RequisitionOut
