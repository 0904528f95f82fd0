from dataclasses import dataclass

from sqlalchemy.orm import Session

from carwash_inventory.exceptions import InsufficientStock, NotFound
from carwash_inventory.models.product import Product


@dataclass(frozen=True)
class StockChange:
    product_id: int
    previous_stock: int
    new_stock: int
    unit_cost: float

    @property
    def change(self) -> int:
        return self.new_stock - self.previous_stock


def apply_delta(
    db: Session, product_id: int, delta: int, unit_cost_override: float | None = None
) -> StockChange:
    """Add ``delta`` to a product's stock without letting it go negative.

    The check and the write are one conditional UPDATE, so two concurrent
    deductions can never both pass against the same starting stock. Writes
    nothing but the stock column; callers record the ledger entry.
    """
    updated = (
        db.query(Product)
        .filter(Product.product_id == product_id, Product.stock + delta >= 0)
        .update({Product.stock: Product.stock + delta})
    )
    if not updated:
        current = db.query(Product.stock).filter(Product.product_id == product_id).scalar()
        if current is None:
            raise NotFound(f"Product {product_id} not found")
        raise InsufficientStock(
            f"Insufficient stock for product {product_id}. Current: {current}, requested change: {delta}"
        )

    new_stock, cost = db.query(Product.stock, Product.cost).filter(Product.product_id == product_id).one()
    if unit_cost_override is not None:
        unit_cost = unit_cost_override
    else:
        unit_cost = cost or 0.0
    return StockChange(
        product_id=product_id,
        previous_stock=new_stock - delta,
        new_stock=new_stock,
        unit_cost=unit_cost,
    )
