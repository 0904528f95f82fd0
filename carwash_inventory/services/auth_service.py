import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from carwash_inventory.config import settings
from carwash_inventory.exceptions import PermissionDenied

logger = logging.getLogger(__name__)

ROLES = ("user", "employee", "admin")


@dataclass(frozen=True)
class Identity:
    """Verified caller, handed to every workflow operation."""

    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def create_access_token(user_id: int, role: str) -> str:
    """Mint a token the way the users service does. Used by tooling and tests."""
    payload = {
        "sub": str(user_id),
        "user_id": user_id,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError):
        return None


def identity_from_token(token: str) -> Identity | None:
    payload = decode_token(token)
    if not payload:
        return None
    user_id = payload.get("user_id")
    role = payload.get("role")
    if not isinstance(user_id, int) or role not in ROLES:
        logger.warning("Rejected token with claims user_id=%r role=%r", user_id, role)
        return None
    return Identity(user_id=user_id, role=role)


def require_role(identity: Identity, *roles: str) -> None:
    if identity.role not in roles:
        logger.info("User %s (%s) denied; needs one of %s", identity.user_id, identity.role, roles)
        if roles == ("admin",):
            raise PermissionDenied("Access denied. Admins only.")
        raise PermissionDenied("Access denied.")
