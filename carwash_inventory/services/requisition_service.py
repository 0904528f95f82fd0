import logging

from sqlalchemy.orm import Session

from carwash_inventory.exceptions import EmptyItems, InvalidAction, InvalidState, NotFound
from carwash_inventory.models.requisition import Requisition, RequisitionItem, RequisitionStatus
from carwash_inventory.schemas.requisition import RequisitionCreate
from carwash_inventory.services.auth_service import Identity, require_role
from carwash_inventory.services.ledger_transaction import ledger_transaction
from carwash_inventory.services.product_service import require_products

logger = logging.getLogger(__name__)

DECISIONS = {
    "approve": RequisitionStatus.APPROVED,
    "reject": RequisitionStatus.REJECTED,
}


def create_requisition(db: Session, identity: Identity, data: RequisitionCreate) -> Requisition:
    if not data.items:
        raise EmptyItems("No items provided")
    require_products(db, [item.product_id for item in data.items])

    with ledger_transaction(db, identity) as tx:
        requisition = Requisition(
            requested_by=identity.user_id,
            reason=data.reason,
            status=RequisitionStatus.PENDING,
        )
        db.add(requisition)
        db.flush()

        for item_data in data.items:
            db.add(RequisitionItem(
                requisition_id=requisition.id,
                product_id=item_data.product_id,
                quantity=item_data.quantity,
            ))
        db.flush()
        tx.audit(
            "REQUISITION_CREATED",
            "purchase_requisitions",
            requisition.id,
            {"reason": data.reason, "items": [i.model_dump() for i in data.items]},
        )

    db.refresh(requisition)
    logger.info("Requisition %s created by user %s (%d items)", requisition.id, identity.user_id, len(data.items))
    return requisition


def get_requisition(db: Session, identity: Identity, requisition_id: int) -> Requisition:
    require_role(identity, "admin")
    requisition = db.query(Requisition).filter(Requisition.id == requisition_id).first()
    if not requisition:
        raise NotFound("Requisition not found")
    return requisition


def list_requisitions(
    db: Session,
    identity: Identity,
    status: RequisitionStatus | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[Requisition]:
    require_role(identity, "admin")
    q = db.query(Requisition)
    if status:
        q = q.filter(Requisition.status == status)
    return q.order_by(Requisition.created_at.desc(), Requisition.id.desc()).offset(skip).limit(limit).all()


def decide_requisition(db: Session, identity: Identity, requisition_id: int, action: str) -> Requisition:
    require_role(identity, "admin")
    if action not in DECISIONS:
        raise InvalidAction("Invalid action. Use 'approve' or 'reject'.")
    new_status = DECISIONS[action]

    with ledger_transaction(db, identity) as tx:
        # Conditional on the current status so a racing second decision finds nothing to update
        updated = (
            db.query(Requisition)
            .filter(Requisition.id == requisition_id, Requisition.status == RequisitionStatus.PENDING)
            .update({Requisition.status: new_status}, synchronize_session=False)
        )
        if not updated:
            requisition = db.query(Requisition).filter(Requisition.id == requisition_id).first()
            if not requisition:
                raise NotFound("Requisition not found")
            raise InvalidState(f"Requisition already processed ({requisition.status.value})")
        tx.audit(f"REQUISITION_{new_status.value.upper()}", "purchase_requisitions", requisition_id, {"action": action})

    requisition = get_requisition(db, identity, requisition_id)
    logger.info("Requisition %s %s by user %s", requisition_id, new_status.value, identity.user_id)
    return requisition
