import logging

from sqlalchemy.orm import Session

from carwash_inventory.exceptions import NotFound, ValidationError
from carwash_inventory.models.inventory_log import InventoryReason
from carwash_inventory.models.product import Product, Supplier
from carwash_inventory.schemas.product import ProductCreate, ProductUpdate, SupplierCreate
from carwash_inventory.services.auth_service import Identity, require_role
from carwash_inventory.services.inventory_log_service import record_stock_change
from carwash_inventory.services.ledger_transaction import ledger_transaction

logger = logging.getLogger(__name__)


def create_product(db: Session, identity: Identity, data: ProductCreate) -> Product:
    require_role(identity, "admin")
    if data.supplier_id is not None:
        get_supplier(db, data.supplier_id)

    with ledger_transaction(db, identity) as tx:
        product = Product(
            name=data.name,
            description=data.description,
            supplier_id=data.supplier_id,
            cost=data.cost,
            price=data.price,
            stock=0,
            reorder_level=data.reorder_level,
        )
        db.add(product)
        db.flush()

        # Opening stock goes through the ledger like any other movement
        if data.stock > 0:
            record_stock_change(
                db,
                product.product_id,
                data.stock,
                InventoryReason.INITIAL_STOCK,
                ref_table="products",
                ref_id=product.product_id,
                created_by=identity.user_id,
            )
        tx.audit("PRODUCT_CREATED", "products", product.product_id, data.model_dump())

    db.refresh(product)
    logger.info("Product %s (%s) created with stock %d", product.product_id, product.name, product.stock)
    return product


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.product_id == product_id).first()
    if not product:
        raise NotFound(f"Product {product_id} not found")
    return product


def list_products(
    db: Session, skip: int = 0, limit: int = 100, supplier_id: int | None = None, include_archived: bool = False
) -> list[Product]:
    q = db.query(Product)
    if not include_archived:
        q = q.filter(Product.archived.is_(False))
    if supplier_id is not None:
        q = q.filter(Product.supplier_id == supplier_id)
    return q.order_by(Product.created_at.desc(), Product.product_id.desc()).offset(skip).limit(limit).all()


def require_products(db: Session, product_ids: list[int]) -> dict[int, Product]:
    """Load every referenced product, failing on the first one that is missing or archived."""
    wanted = set(product_ids)
    products = {
        p.product_id: p
        for p in db.query(Product).filter(Product.product_id.in_(wanted), Product.archived.is_(False)).all()
    }
    missing = sorted(wanted - products.keys())
    if missing:
        raise NotFound(f"Product {missing[0]} not found")
    return products


def update_product(db: Session, identity: Identity, product_id: int, data: ProductUpdate) -> Product:
    require_role(identity, "admin")
    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("supplier_id") is not None:
        get_supplier(db, update_data["supplier_id"])

    with ledger_transaction(db, identity) as tx:
        product = get_product(db, product_id)
        for field, value in update_data.items():
            setattr(product, field, value)
        tx.audit("PRODUCT_UPDATED", "products", product_id, update_data)
    db.refresh(product)
    return product


def archive_product(db: Session, identity: Identity, product_id: int) -> Product:
    require_role(identity, "admin")
    with ledger_transaction(db, identity) as tx:
        product = get_product(db, product_id)
        product.archived = True
        tx.audit("PRODUCT_ARCHIVED", "products", product_id)
    db.refresh(product)
    return product


# --- Low stock advisory ---

def list_low_stock(db: Session, identity: Identity) -> list[Product]:
    require_role(identity, "admin")
    return (
        db.query(Product)
        .filter(Product.archived.is_(False), Product.stock <= Product.reorder_level)
        .order_by(Product.stock.asc(), Product.product_id.asc())
        .all()
    )


def suggest_reorders(db: Session, identity: Identity) -> list[dict]:
    return [
        {
            "product_id": p.product_id,
            "product_name": p.name,
            "supplier_id": p.supplier_id,
            "supplier_name": p.supplier_name,
            "current_stock": p.stock,
            "reorder_level": p.reorder_level,
            "suggested_qty": max(p.reorder_level - p.stock, 0),
        }
        for p in list_low_stock(db, identity)
    ]


# --- Supplier service ---

def create_supplier(db: Session, identity: Identity, data: SupplierCreate) -> Supplier:
    require_role(identity, "admin")
    with ledger_transaction(db, identity) as tx:
        supplier = Supplier(name=data.name, contact=data.contact)
        db.add(supplier)
        db.flush()
        tx.audit("SUPPLIER_CREATED", "suppliers", supplier.id, data.model_dump())
    db.refresh(supplier)
    return supplier


def get_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.query(Supplier).filter(Supplier.id == supplier_id).first()
    if not supplier:
        raise ValidationError(f"Supplier {supplier_id} does not exist")
    return supplier


def list_suppliers(db: Session) -> list[Supplier]:
    return db.query(Supplier).order_by(Supplier.name.asc()).all()
