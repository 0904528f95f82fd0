from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from carwash_inventory.config import settings


def make_engine(url: str) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = settings.SQLITE_BUSY_TIMEOUT

    engine = create_engine(url, connect_args=connect_args)
    if url.startswith("sqlite"):
        _use_immediate_transactions(engine)
    return engine


def _use_immediate_transactions(engine: Engine) -> None:
    """Have SQLAlchemy emit BEGIN IMMEDIATE instead of pysqlite's deferred BEGIN.

    Every SQLite transaction then holds the write lock from its first
    statement, so stock read-check-write sequences are serialized and
    SAVEPOINTs nest inside a real transaction.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None):
    # Import all models so Base.metadata knows about them
    import carwash_inventory.models.audit_log  # noqa: F401
    import carwash_inventory.models.inventory_log  # noqa: F401
    import carwash_inventory.models.product  # noqa: F401
    import carwash_inventory.models.purchase  # noqa: F401
    import carwash_inventory.models.requisition  # noqa: F401
    import carwash_inventory.models.service_product  # noqa: F401
    import carwash_inventory.models.user  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
