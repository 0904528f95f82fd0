from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AuditActionCreate(BaseModel):
    action: str = Field(min_length=1)
    table_name: str = Field(min_length=1)
    row_id: str | int
    payload: dict[str, Any] = {}
    user_id: int | None = None


class AuditLogOut(BaseModel):
    id: int
    user_id: int | None
    action: str
    table_name: str
    row_id: str
    payload: dict[str, Any]
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditActionResult(BaseModel):
    status: str = "success"
    log: AuditLogOut
