import logging

from sqlalchemy.orm import Session

from carwash_inventory.exceptions import ValidationError
from carwash_inventory.models.inventory_log import InventoryLog, InventoryReason
from carwash_inventory.models.service_product import ServiceProduct
from carwash_inventory.schemas.service_product import ServiceApply, ServiceProductAssign
from carwash_inventory.services.auth_service import Identity, require_role
from carwash_inventory.services.inventory_log_service import record_stock_change
from carwash_inventory.services.ledger_transaction import ledger_transaction
from carwash_inventory.services.product_service import require_products

logger = logging.getLogger(__name__)


def assign_product(db: Session, identity: Identity, data: ServiceProductAssign) -> ServiceProduct:
    require_role(identity, "admin")
    require_products(db, [data.product_id])
    with ledger_transaction(db, identity) as tx:
        link = ServiceProduct(
            service_id=data.service_id,
            variant_id=data.variant_id,
            product_id=data.product_id,
            quantity=data.quantity,
        )
        db.add(link)
        db.flush()
        tx.audit("SERVICE_PRODUCT_ASSIGNED", "service_products", link.id, data.model_dump())
    db.refresh(link)
    return link


def list_links(db: Session, service_id: int, variant_id: int) -> list[ServiceProduct]:
    return (
        db.query(ServiceProduct)
        .filter(ServiceProduct.service_id == service_id, ServiceProduct.variant_id == variant_id)
        .order_by(ServiceProduct.id.asc())
        .all()
    )


def apply_service(db: Session, identity: Identity, data: ServiceApply) -> list[InventoryLog]:
    """Deduct every product a service variant consumes. One short product cancels the whole service."""
    links = list_links(db, data.service_id, data.variant_id)
    if not links:
        raise ValidationError("No products linked for this service/variant.")

    with ledger_transaction(db, identity) as tx:
        logs = [
            record_stock_change(
                db,
                link.product_id,
                -link.quantity,
                InventoryReason.SERVICE_APPLIED,
                ref_table="service_products",
                ref_id=link.id,
                created_by=identity.user_id,
            )
            for link in links
        ]
        tx.audit("SERVICE_APPLIED", "services", data.service_id, {
            "variant_id": data.variant_id,
            "deductions": [{"product_id": link.product_id, "quantity": link.quantity} for link in links],
        })

    for log in logs:
        db.refresh(log)
    logger.info(
        "Service %s/%s applied by user %s, %d products deducted",
        data.service_id, data.variant_id, identity.user_id, len(logs),
    )
    return logs
