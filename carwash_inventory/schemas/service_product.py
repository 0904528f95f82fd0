from pydantic import BaseModel, Field

from carwash_inventory.schemas.inventory_log import MAX_QUANTITY, InventoryLogOut


class ServiceProductAssign(BaseModel):
    service_id: int
    variant_id: int
    product_id: int
    quantity: int = Field(gt=0, le=MAX_QUANTITY)


class ServiceProductOut(BaseModel):
    id: int
    service_id: int
    variant_id: int
    product_id: int
    product_name: str = ""
    product_stock: int = 0
    quantity: int

    model_config = {"from_attributes": True}


class ServiceApply(BaseModel):
    service_id: int
    variant_id: int


class ServiceApplied(BaseModel):
    message: str = "Service applied and stock deducted successfully"
    logs: list[InventoryLogOut]
