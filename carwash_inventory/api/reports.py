from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carwash_inventory.api.auth import get_identity
from carwash_inventory.database import get_db
from carwash_inventory.services import report_service
from carwash_inventory.services.auth_service import Identity

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/inventory")
def inventory_report(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return report_service.inventory_summary(db)


@router.get("/usage/{product_id}")
def usage_report(
    product_id: int,
    days: int | None = None,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return report_service.usage_history(db, product_id, days=days)
