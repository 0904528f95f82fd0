"""One database transaction per logical inventory operation.

Stock updates, ledger entries and the operation's own row changes either all
commit or all roll back. Audit records are queued during the operation and
written just before commit, each under its own SAVEPOINT: a failed audit write
is logged and dropped, the rest of the operation still commits.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from carwash_inventory.exceptions import StoreUnavailable
from carwash_inventory.services import audit_service
from carwash_inventory.services.auth_service import Identity

logger = logging.getLogger(__name__)


@dataclass
class PendingAudit:
    action: str
    table_name: str
    row_id: int | str
    payload: dict = field(default_factory=dict)


class LedgerTransaction:
    def __init__(self, db: Session, identity: Identity | None = None):
        self.db = db
        self.identity = identity
        self.pending_audit: list[PendingAudit] = []

    def audit(self, action: str, table_name: str, row_id: int | str, payload: dict | None = None) -> None:
        self.pending_audit.append(PendingAudit(action, table_name, row_id, payload or {}))

    def write_audit(self) -> int:
        user_id = self.identity.user_id if self.identity else None
        written = 0
        for record in self.pending_audit:
            try:
                with self.db.begin_nested():
                    audit_service.append(
                        self.db, record.action, record.table_name, record.row_id, record.payload, user_id=user_id
                    )
            except SQLAlchemyError as exc:
                logger.warning(
                    "Audit record %s on %s/%s dropped: %s", record.action, record.table_name, record.row_id, exc
                )
                continue
            written += 1
        self.pending_audit.clear()
        return written


@contextmanager
def ledger_transaction(db: Session, identity: Identity | None = None):
    tx = LedgerTransaction(db, identity)
    try:
        yield tx
        # Primary writes must fail here, not inside an audit savepoint
        db.flush()
        tx.write_audit()
        db.commit()
    except OperationalError as exc:
        db.rollback()
        logger.error("Inventory store unavailable, transaction rolled back: %s", exc)
        raise StoreUnavailable("Inventory store unavailable; no changes were applied") from exc
    except Exception:
        db.rollback()
        raise
