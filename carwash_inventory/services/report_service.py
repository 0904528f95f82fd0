from collections import defaultdict
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from carwash_inventory.models.inventory_log import InventoryLog
from carwash_inventory.models.product import Product
from carwash_inventory.services.product_service import get_product

MIN_USAGE_RECORDS = 3
HISTORY_DAYS_RETURNED = 30


def inventory_summary(db: Session) -> dict:
    products = db.query(Product).filter(Product.archived.is_(False)).all()
    total_units = sum(p.stock for p in products)
    total_value = sum(p.stock * (p.cost or 0) for p in products)
    low_stock = [p for p in products if p.stock <= p.reorder_level]

    return {
        "total_products": len(products),
        "total_units_in_stock": total_units,
        "total_inventory_value": round(total_value, 2),
        "low_stock_count": len(low_stock),
        "low_stock_items": [
            {"product_id": p.product_id, "name": p.name, "stock": p.stock, "reorder_level": p.reorder_level}
            for p in low_stock
        ],
    }


def usage_history(db: Session, product_id: int, days: int | None = None) -> dict:
    """Daily outgoing quantities for a product, the input a demand forecast works from."""
    get_product(db, product_id)
    q = db.query(InventoryLog).filter(InventoryLog.product_id == product_id, InventoryLog.change < 0)
    if days:
        since = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=days)
        q = q.filter(InventoryLog.created_at >= since)
    logs = q.order_by(InventoryLog.created_at.asc()).all()

    if len(logs) < MIN_USAGE_RECORDS:
        return {
            "status": "insufficient_data",
            "message": f"Found only {len(logs)} usage records. Need at least {MIN_USAGE_RECORDS}.",
        }

    daily: dict[str, int] = defaultdict(int)
    for log in logs:
        daily[log.created_at.date().isoformat()] += abs(log.change)
    history = [{"date": date, "qty": qty} for date, qty in sorted(daily.items())]

    if len(history) < 2:
        return {
            "status": "insufficient_data",
            "message": "All usage falls on the same day; a trend needs at least two days.",
        }

    total = sum(h["qty"] for h in history)
    return {
        "status": "success",
        "product_id": product_id,
        "average_daily_usage": round(total / len(history), 2),
        "history": history[-HISTORY_DAYS_RETURNED:],
    }
