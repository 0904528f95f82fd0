from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carwash_inventory.api.auth import get_identity
from carwash_inventory.database import get_db
from carwash_inventory.models.purchase import PurchaseStatus
from carwash_inventory.schemas.purchase import (
    PurchaseCreate,
    PurchaseCreated,
    PurchaseFromRequisition,
    PurchaseOut,
    PurchaseReceive,
    PurchaseReceived,
)
from carwash_inventory.services import purchase_service
from carwash_inventory.services.auth_service import Identity

router = APIRouter(prefix="/purchases", tags=["Purchases"])


@router.post("", response_model=PurchaseCreated, status_code=201)
def create_purchase(data: PurchaseCreate, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    purchase = purchase_service.create_purchase(db, identity, data)
    return {"message": "Purchase order created", "purchase": purchase, "items": purchase.items}


@router.post("/from-requisition", response_model=PurchaseCreated, status_code=201)
def create_purchase_from_requisition(
    data: PurchaseFromRequisition, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)
):
    purchase = purchase_service.create_purchase_from_requisition(db, identity, data)
    return {"message": "Purchase order created from requisition", "purchase": purchase, "items": purchase.items}


@router.get("", response_model=list[PurchaseOut])
def list_purchases(
    status: PurchaseStatus | None = None,
    skip: int = 0,
    limit: int = 100,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return purchase_service.list_purchases(db, identity, status=status, skip=skip, limit=limit)


@router.get("/{purchase_id}", response_model=PurchaseOut)
def get_purchase(purchase_id: int, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return purchase_service.get_purchase(db, identity, purchase_id)


@router.patch("/{purchase_id}/receive", response_model=PurchaseReceived)
def receive_purchase(
    purchase_id: int,
    data: PurchaseReceive,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    purchase = purchase_service.receive_purchase(db, identity, purchase_id, data)
    return {"status": "success", "purchase": purchase}
