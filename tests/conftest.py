"""
Pytest configuration and fixtures for the inventory ledger
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from carwash_inventory.database import get_db, init_db, make_engine
from carwash_inventory.main import app
from carwash_inventory.models.product import Product, Supplier
from carwash_inventory.models.user import User
from carwash_inventory.services.auth_service import Identity, create_access_token

ADMIN = Identity(user_id=1, role="admin")
EMPLOYEE = Identity(user_id=2, role="employee")
USER = Identity(user_id=3, role="user")


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so separate sessions (and threads) see each other's commits"""
    engine = make_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(identity: Identity) -> dict:
    return {"Authorization": f"Bearer {create_access_token(identity.user_id, identity.role)}"}


@pytest.fixture
def admin_headers():
    return auth_headers(ADMIN)


@pytest.fixture
def employee_headers():
    return auth_headers(EMPLOYEE)


@pytest.fixture
def user_headers():
    return auth_headers(USER)


PRODUCT_DEFAULTS = {"name": "Foam shampoo", "cost": 2.5, "price": 6.0, "stock": 10, "reorder_level": 5}


@pytest.fixture
def add_product(db):
    """Insert a product through the test's own session (service-level tests)"""
    def _add(**overrides) -> Product:
        product = Product(**{**PRODUCT_DEFAULTS, **overrides})
        db.add(product)
        db.commit()
        return product
    return _add


@pytest.fixture
def make_product(session_factory):
    """Insert a product directly and return its id; the session is closed before the test continues"""
    def _make(**overrides) -> int:
        with session_factory() as session:
            product = Product(**{**PRODUCT_DEFAULTS, **overrides})
            session.add(product)
            session.commit()
            return product.product_id
    return _make


@pytest.fixture
def make_supplier(session_factory):
    def _make(name: str = "Suds & Co") -> int:
        with session_factory() as session:
            supplier = Supplier(name=name)
            session.add(supplier)
            session.commit()
            return supplier.id
    return _make


@pytest.fixture
def make_user(session_factory):
    def _make(user_id: int, full_name: str, role: str = "user") -> int:
        with session_factory() as session:
            session.add(User(id=user_id, full_name=full_name, role=role))
            session.commit()
        return user_id
    return _make


@pytest.fixture
def stock_of(session_factory):
    def _stock(product_id: int) -> int:
        with session_factory() as session:
            return session.query(Product.stock).filter(Product.product_id == product_id).scalar()
    return _stock
