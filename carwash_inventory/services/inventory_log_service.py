import logging

from sqlalchemy.orm import Session

from carwash_inventory.exceptions import ValidationError
from carwash_inventory.models.inventory_log import InventoryLog
from carwash_inventory.models.product import Product
from carwash_inventory.models.user import User
from carwash_inventory.schemas.inventory_log import InventoryAdjust
from carwash_inventory.services import stock_service
from carwash_inventory.services.auth_service import Identity
from carwash_inventory.services.ledger_transaction import ledger_transaction

logger = logging.getLogger(__name__)


def append_entry(
    db: Session,
    product_id: int,
    change: int,
    reason: str,
    previous_stock: int,
    new_stock: int,
    unit_cost: float,
    ref_table: str | None = None,
    ref_id: int | None = None,
    created_by: int | None = None,
) -> InventoryLog:
    total_cost_impact = change * unit_cost
    log = InventoryLog(
        product_id=product_id,
        change=change,
        reason=reason,
        ref_table=ref_table,
        ref_id=ref_id,
        created_by=created_by,
        previous_stock=previous_stock,
        new_stock=new_stock,
        unit_cost=unit_cost,
        total_cost=total_cost_impact,
        snapshot={
            "previous_stock": previous_stock,
            "new_stock": new_stock,
            "unit_cost": unit_cost,
            "total_cost_impact": total_cost_impact,
        },
    )
    db.add(log)
    db.flush()
    return log


def record_stock_change(
    db: Session,
    product_id: int,
    change: int,
    reason: str,
    unit_cost_override: float | None = None,
    ref_table: str | None = None,
    ref_id: int | None = None,
    created_by: int | None = None,
) -> InventoryLog:
    """Apply a stock delta and append its ledger entry. Run inside ledger_transaction."""
    result = stock_service.apply_delta(db, product_id, change, unit_cost_override)
    return append_entry(
        db,
        product_id=product_id,
        change=change,
        reason=reason,
        previous_stock=result.previous_stock,
        new_stock=result.new_stock,
        unit_cost=result.unit_cost,
        ref_table=ref_table,
        ref_id=ref_id,
        created_by=created_by,
    )


def adjust_stock(db: Session, identity: Identity, data: InventoryAdjust) -> InventoryLog:
    """Manual stock adjustment, e.g. a count correction or a sale recorded by staff."""
    if data.change == 0:
        raise ValidationError("change must be a non-zero integer")

    # Only admins may book an adjustment on someone else's behalf
    created_by = identity.user_id
    if identity.is_admin and data.created_by is not None:
        created_by = data.created_by

    with ledger_transaction(db, identity) as tx:
        log = record_stock_change(
            db,
            data.product_id,
            data.change,
            data.reason,
            ref_table=data.ref_table,
            ref_id=data.ref_id,
            created_by=created_by,
        )
        tx.audit(
            "INVENTORY_UPDATE",
            "products",
            data.product_id,
            {
                "change": data.change,
                "reason": data.reason,
                "unit_cost": log.unit_cost,
                "total_cost_impact": log.total_cost,
            },
        )
    db.refresh(log)
    logger.info(
        "Stock of product %s adjusted by %+d (%s): %d -> %d",
        log.product_id, log.change, log.reason, log.previous_stock, log.new_stock,
    )
    return log


def list_entries(db: Session, product_id: int | None = None, skip: int = 0, limit: int = 100) -> list[dict]:
    q = (
        db.query(InventoryLog, Product.name, User.full_name)
        .outerjoin(Product, Product.product_id == InventoryLog.product_id)
        .outerjoin(User, User.id == InventoryLog.created_by)
    )
    if product_id is not None:
        q = q.filter(InventoryLog.product_id == product_id)
    rows = q.order_by(InventoryLog.created_at.desc(), InventoryLog.id.desc()).offset(skip).limit(limit).all()

    entries = []
    for log, product_name, creator_name in rows:
        snapshot = log.snapshot or {}
        entries.append({
            "id": log.id,
            "product_id": log.product_id,
            "product": product_name or "N/A",
            "change": log.change,
            "reason": log.reason,
            "ref_table": log.ref_table,
            "ref_id": log.ref_id,
            "created_by": log.created_by,
            "created_by_name": creator_name or "System",
            "created_at": log.created_at,
            # Older rows may lack the snapshot; fall back to the flat columns
            "metadata": {
                "previous_stock": snapshot.get("previous_stock", log.previous_stock),
                "new_stock": snapshot.get("new_stock", log.new_stock),
                "unit_cost": snapshot.get("unit_cost", log.unit_cost) or 0,
                "total_cost_impact": snapshot.get("total_cost_impact", log.total_cost) or 0,
            },
        })
    return entries
