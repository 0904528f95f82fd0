from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carwash_inventory.api.auth import get_identity
from carwash_inventory.database import get_db
from carwash_inventory.schemas.service_product import (
    ServiceApplied,
    ServiceApply,
    ServiceProductAssign,
    ServiceProductOut,
)
from carwash_inventory.services import service_usage_service
from carwash_inventory.services.auth_service import Identity

router = APIRouter(prefix="/service-products", tags=["Service Products"])


@router.post("/assign", response_model=ServiceProductOut, status_code=201)
def assign_product(data: ServiceProductAssign, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return service_usage_service.assign_product(db, identity, data)


@router.get("/{service_id}/{variant_id}", response_model=list[ServiceProductOut])
def list_service_products(
    service_id: int,
    variant_id: int,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return service_usage_service.list_links(db, service_id, variant_id)


@router.post("/apply", response_model=ServiceApplied)
def apply_service(data: ServiceApply, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    logs = service_usage_service.apply_service(db, identity, data)
    return {"logs": logs}
