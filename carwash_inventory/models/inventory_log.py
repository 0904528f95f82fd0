from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from carwash_inventory.database import Base


class InventoryReason:
    PURCHASE_RECEIVED = "PURCHASE_RECEIVED"
    SERVICE_APPLIED = "SERVICE_APPLIED"
    INITIAL_STOCK = "INITIAL_STOCK"
    ADJUSTMENT = "ADJUSTMENT"


class InventoryLog(Base):
    """Append-only ledger entry for one stock change. Never updated or deleted."""

    __tablename__ = "inventory_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.product_id"), nullable=False, index=True)
    change: Mapped[int] = mapped_column(Integer, nullable=False)  # positive=in, negative=out
    reason: Mapped[str] = mapped_column(String, nullable=False)
    ref_table: Mapped[str | None] = mapped_column(String, nullable=True)  # purchases, service_products, products
    ref_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)

    previous_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    new_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_cost: Mapped[float] = mapped_column(Float, default=0.0)
    total_cost: Mapped[float] = mapped_column(Float, default=0.0)
    # Same numbers as the flat columns, kept for clients that read the snapshot
    snapshot: Mapped[dict] = mapped_column("metadata", JSON, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), index=True)
