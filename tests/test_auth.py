from datetime import datetime, timedelta, timezone

import jwt
import pytest

from carwash_inventory.config import settings
from carwash_inventory.exceptions import PermissionDenied
from carwash_inventory.services.auth_service import Identity, create_access_token, identity_from_token, require_role


def _token(**claims):
    payload = {"exp": datetime.now(timezone.utc) + timedelta(hours=1), **claims}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")


def test_token_round_trip():
    assert identity_from_token(create_access_token(5, "employee")) == Identity(user_id=5, role="employee")


@pytest.mark.parametrize("token", [
    "not-a-jwt",
    jwt.encode({"user_id": 1, "role": "admin"}, "some-other-secret", algorithm="HS256"),
    _token(user_id=1, role="owner"),
    _token(user_id="1", role="admin"),
    _token(role="admin"),
])
def test_bad_tokens_yield_no_identity(token):
    assert identity_from_token(token) is None


def test_expired_token_is_rejected():
    token = jwt.encode(
        {"user_id": 1, "role": "admin", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.SECRET_KEY,
        algorithm="HS256",
    )
    assert identity_from_token(token) is None


def test_require_role():
    require_role(Identity(1, "admin"), "admin")
    with pytest.raises(PermissionDenied, match="Admins only"):
        require_role(Identity(2, "employee"), "admin")


def test_me(client, employee_headers):
    resp = client.get("/api/auth/me", headers=employee_headers)
    assert resp.json() == {"user_id": 2, "role": "employee"}


def test_invalid_bearer_token(client):
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer nonsense"})
    assert resp.status_code == 401
    assert resp.json() == {"status": "error", "message": "Invalid token"}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
