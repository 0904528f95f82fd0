from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carwash_inventory.api.auth import get_identity
from carwash_inventory.database import get_db
from carwash_inventory.schemas.audit_log import AuditActionCreate, AuditActionResult, AuditLogOut
from carwash_inventory.schemas.inventory_log import InventoryAdjust, InventoryAdjustResult, InventoryLogRow
from carwash_inventory.services import audit_service, inventory_log_service
from carwash_inventory.services.auth_service import Identity

router = APIRouter(tags=["Inventory Logs"])


@router.get("/inventory-logs", response_model=list[InventoryLogRow])
def list_inventory_logs(
    product_id: int | None = None,
    skip: int = 0,
    limit: int = 100,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return inventory_log_service.list_entries(db, product_id=product_id, skip=skip, limit=limit)


@router.post("/inventory-logs", response_model=InventoryAdjustResult, status_code=201)
def adjust_inventory(data: InventoryAdjust, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    log = inventory_log_service.adjust_stock(db, identity, data)
    return {"status": "success", "message": "Inventory updated with cost-aware audit log", "log": log}


@router.post("/log-action", response_model=AuditActionResult, status_code=201)
def log_action(data: AuditActionCreate, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return {"status": "success", "log": audit_service.record_action(db, identity, data)}


@router.get("/audit-logs", response_model=list[AuditLogOut])
def list_audit_logs(
    table_name: str | None = None,
    row_id: str | None = None,
    action: str | None = None,
    skip: int = 0,
    limit: int = 100,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return audit_service.list_entries(
        db, identity, table_name=table_name, row_id=row_id, action=action, skip=skip, limit=limit
    )
