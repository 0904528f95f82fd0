import logging
from collections import Counter
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from carwash_inventory.config import settings
from carwash_inventory.exceptions import EmptyItems, InvalidState, NotFound, ValidationError
from carwash_inventory.models.inventory_log import InventoryReason
from carwash_inventory.models.product import Product
from carwash_inventory.models.purchase import Purchase, PurchaseItem, PurchaseStatus
from carwash_inventory.models.requisition import Requisition, RequisitionStatus
from carwash_inventory.schemas.purchase import (
    PurchaseCreate,
    PurchaseFromRequisition,
    PurchaseItemCreate,
    PurchaseReceive,
)
from carwash_inventory.services.auth_service import Identity, require_role
from carwash_inventory.services.inventory_log_service import record_stock_change
from carwash_inventory.services.ledger_transaction import ledger_transaction
from carwash_inventory.services.product_service import get_supplier, require_products

logger = logging.getLogger(__name__)


def _add_purchase(
    db: Session,
    identity: Identity,
    supplier_id: int | None,
    notes: str,
    items: list[PurchaseItemCreate],
    products: dict[int, Product],
    requisition_id: int | None = None,
) -> Purchase:
    purchase = Purchase(
        supplier_id=supplier_id,
        requisition_id=requisition_id,
        notes=notes,
        created_by=identity.user_id,
        status=PurchaseStatus.PENDING,
    )
    db.add(purchase)
    db.flush()

    for item_data in items:
        cost = item_data.cost if item_data.cost is not None else products[item_data.product_id].cost
        db.add(PurchaseItem(
            purchase_id=purchase.id,
            product_id=item_data.product_id,
            quantity=item_data.quantity,
            cost=cost or 0.0,
        ))
    db.flush()
    return purchase


def _item_payload(items) -> list[dict]:
    return [{"product_id": i.product_id, "quantity": i.quantity, "cost": i.cost} for i in items]


def create_purchase(db: Session, identity: Identity, data: PurchaseCreate) -> Purchase:
    require_role(identity, "admin")
    if not data.items:
        raise EmptyItems("No items provided")
    products = require_products(db, [item.product_id for item in data.items])
    if data.supplier_id is not None:
        get_supplier(db, data.supplier_id)

    with ledger_transaction(db, identity) as tx:
        purchase = _add_purchase(db, identity, data.supplier_id, data.notes, data.items, products)
        tx.audit("PURCHASE_CREATED", "purchases", purchase.id, {
            "supplier_id": data.supplier_id,
            "items": _item_payload(data.items),
        })

    db.refresh(purchase)
    logger.info("Purchase %s created by user %s (%d items)", purchase.id, identity.user_id, len(data.items))
    return purchase


def _check_against_requisition(requisition: Requisition, items: list[PurchaseItemCreate]) -> None:
    requested = Counter()
    for item in requisition.items:
        requested[item.product_id] += item.quantity
    ordered = Counter()
    for item in items:
        ordered[item.product_id] += item.quantity

    for product_id, quantity in ordered.items():
        if product_id not in requested:
            raise ValidationError(f"Product {product_id} is not part of requisition #{requisition.id}")
        if quantity > requested[product_id]:
            raise ValidationError(
                f"Product {product_id}: ordering {quantity} but requisition #{requisition.id} "
                f"requested {requested[product_id]}"
            )


def create_purchase_from_requisition(db: Session, identity: Identity, data: PurchaseFromRequisition) -> Purchase:
    require_role(identity, "admin")
    requisition = db.query(Requisition).filter(Requisition.id == data.requisition_id).first()
    if not requisition:
        raise NotFound("Requisition not found")
    if requisition.status != RequisitionStatus.APPROVED:
        raise InvalidState("Requisition not approved yet")

    items = data.items or [
        PurchaseItemCreate(product_id=item.product_id, quantity=item.quantity) for item in requisition.items
    ]
    if not items:
        raise EmptyItems("No items provided")
    if data.items and settings.ENFORCE_REQUISITION_ITEMS:
        _check_against_requisition(requisition, items)
    products = require_products(db, [item.product_id for item in items])
    if data.supplier_id is not None:
        get_supplier(db, data.supplier_id)

    with ledger_transaction(db, identity) as tx:
        fulfilled = (
            db.query(Requisition)
            .filter(Requisition.id == requisition.id, Requisition.status == RequisitionStatus.APPROVED)
            .update({Requisition.status: RequisitionStatus.FULFILLED}, synchronize_session=False)
        )
        if not fulfilled:
            raise InvalidState("Requisition not approved yet")

        notes = data.notes or f"PO from requisition #{requisition.id}"
        purchase = _add_purchase(
            db, identity, data.supplier_id, notes, items, products, requisition_id=requisition.id
        )
        tx.audit("PURCHASE_CREATED_FROM_REQUISITION", "purchases", purchase.id, {
            "requisition_id": requisition.id,
            "supplier_id": data.supplier_id,
            "items": _item_payload(items),
        })

    db.refresh(purchase)
    logger.info("Purchase %s created from requisition %s", purchase.id, purchase.requisition_id)
    return purchase


def get_purchase(db: Session, identity: Identity, purchase_id: int) -> Purchase:
    require_role(identity, "admin")
    purchase = db.query(Purchase).filter(Purchase.id == purchase_id).first()
    if not purchase:
        raise NotFound("Purchase not found")
    return purchase


def list_purchases(
    db: Session,
    identity: Identity,
    status: PurchaseStatus | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[Purchase]:
    require_role(identity, "admin")
    q = db.query(Purchase)
    if status:
        q = q.filter(Purchase.status == status)
    return q.order_by(Purchase.created_at.desc(), Purchase.id.desc()).offset(skip).limit(limit).all()


def receive_purchase(db: Session, identity: Identity, purchase_id: int, data: PurchaseReceive) -> Purchase:
    """Mark a purchase received and book every item into stock, all or nothing."""
    require_role(identity, "admin")
    if not data.items:
        raise EmptyItems("No items provided")
    received_by = data.received_by if data.received_by is not None else identity.user_id

    with ledger_transaction(db, identity) as tx:
        # Only a pending purchase can be received; a repeat call finds nothing to update
        marked = (
            db.query(Purchase)
            .filter(Purchase.id == purchase_id, Purchase.status == PurchaseStatus.PENDING)
            .update(
                {
                    Purchase.status: PurchaseStatus.RECEIVED,
                    Purchase.received_by: received_by,
                    Purchase.received_at: datetime.now(timezone.utc),
                },
                synchronize_session=False,
            )
        )
        if not marked:
            if not db.query(Purchase.id).filter(Purchase.id == purchase_id).first():
                raise NotFound("Purchase not found")
            raise InvalidState("Purchase already received")

        logs = [
            record_stock_change(
                db,
                item.product_id,
                item.quantity,
                InventoryReason.PURCHASE_RECEIVED,
                unit_cost_override=item.cost,
                ref_table="purchases",
                ref_id=purchase_id,
                created_by=received_by,
            )
            for item in data.items
        ]
        tx.audit("PURCHASE_RECEIVED", "purchases", purchase_id, {
            "received_by": received_by,
            "items": _item_payload(data.items),
            "total_cost_impact": sum(log.total_cost for log in logs),
        })

    logger.info("Purchase %s received by %s (%d items)", purchase_id, received_by, len(data.items))
    return get_purchase(db, identity, purchase_id)
