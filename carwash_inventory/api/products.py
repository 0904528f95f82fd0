from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carwash_inventory.api.auth import get_identity
from carwash_inventory.database import get_db
from carwash_inventory.schemas.product import (
    LowStockOut,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    ReorderSuggestion,
    SupplierCreate,
    SupplierOut,
)
from carwash_inventory.services import product_service
from carwash_inventory.services.auth_service import Identity

router = APIRouter(tags=["Products"])


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(data: ProductCreate, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return product_service.create_product(db, identity, data)


@router.get("/products", response_model=list[ProductOut])
def list_products(
    skip: int = 0,
    limit: int = 100,
    supplier_id: int | None = None,
    include_archived: bool = False,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return product_service.list_products(
        db, skip=skip, limit=limit, supplier_id=supplier_id, include_archived=include_archived
    )


@router.get("/products/low-stock", response_model=list[LowStockOut])
def low_stock(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return product_service.list_low_stock(db, identity)


@router.get("/products/low-stock/suggestions", response_model=list[ReorderSuggestion])
def low_stock_suggestions(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return product_service.suggest_reorders(db, identity)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return product_service.get_product(db, product_id)


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    data: ProductUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    return product_service.update_product(db, identity, product_id, data)


@router.patch("/products/{product_id}/archive", response_model=ProductOut)
def archive_product(product_id: int, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return product_service.archive_product(db, identity, product_id)


@router.get("/suppliers", response_model=list[SupplierOut])
def list_suppliers(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return product_service.list_suppliers(db)


@router.post("/suppliers", response_model=SupplierOut, status_code=201)
def create_supplier(data: SupplierCreate, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return product_service.create_supplier(db, identity, data)
