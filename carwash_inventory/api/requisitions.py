from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carwash_inventory.api.auth import get_identity
from carwash_inventory.database import get_db
from carwash_inventory.models.requisition import RequisitionStatus
from carwash_inventory.schemas.requisition import (
    RequisitionCreate,
    RequisitionCreated,
    RequisitionDecided,
    RequisitionDecision,
    RequisitionOut,
)
from carwash_inventory.services import requisition_service
from carwash_inventory.services.auth_service import Identity

router = APIRouter(prefix="/requisitions", tags=["Requisitions"])


@router.post("", response_model=RequisitionCreated, status_code=201)
def create_requisition(data: RequisitionCreate, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    requisition = requisition_service.create_requisition(db, identity, data)
    return {"requisition": requisition, "items": requisition.items}


@router.get("", response_model=list[RequisitionOut])
def list_requisitions(
    status: RequisitionStatus | None = None,
    skip: int = 0,
    limit: int = 100,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return requisition_service.list_requisitions(db, identity, status=status, skip=skip, limit=limit)


@router.get("/{requisition_id}", response_model=RequisitionOut)
def get_requisition(requisition_id: int, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return requisition_service.get_requisition(db, identity, requisition_id)


@router.patch("/{requisition_id}", response_model=RequisitionDecided)
def decide_requisition(
    requisition_id: int,
    data: RequisitionDecision,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    requisition = requisition_service.decide_requisition(db, identity, requisition_id, data.action)
    message = "Requisition approved" if requisition.status == RequisitionStatus.APPROVED else "Requisition rejected"
    return {"message": message, "requisition": requisition}
