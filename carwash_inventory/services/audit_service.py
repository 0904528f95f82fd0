from sqlalchemy.orm import Session

from carwash_inventory.models.audit_log import AuditLog
from carwash_inventory.schemas.audit_log import AuditActionCreate
from carwash_inventory.services.auth_service import Identity, require_role


def append(
    db: Session,
    action: str,
    table_name: str,
    row_id: int | str,
    payload: dict | None = None,
    user_id: int | None = None,
) -> AuditLog:
    entry = AuditLog(
        user_id=user_id,
        action=action,
        table_name=table_name,
        row_id=str(row_id),
        payload=payload or {},
    )
    db.add(entry)
    db.flush()
    return entry


def record_action(db: Session, identity: Identity, data: AuditActionCreate) -> AuditLog:
    """Client-reported action; anything not driven by a ledger workflow."""
    user_id = identity.user_id
    if identity.is_admin and data.user_id is not None:
        user_id = data.user_id
    entry = append(db, data.action, data.table_name, data.row_id, data.payload, user_id=user_id)
    db.commit()
    db.refresh(entry)
    return entry


def list_entries(
    db: Session,
    identity: Identity,
    table_name: str | None = None,
    row_id: str | None = None,
    action: str | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[AuditLog]:
    require_role(identity, "admin")
    q = db.query(AuditLog)
    if table_name:
        q = q.filter(AuditLog.table_name == table_name)
    if row_id:
        q = q.filter(AuditLog.row_id == row_id)
    if action:
        q = q.filter(AuditLog.action == action)
    return q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(skip).limit(limit).all()
