from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from carwash_inventory.services import auth_service
from carwash_inventory.services.auth_service import Identity

router = APIRouter(prefix="/auth", tags=["Auth"])

bearer_scheme = HTTPBearer(auto_error=False)


def get_identity(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> Identity:
    """Dependency: verified identity from the bearer token issued by the users service."""
    if not credentials:
        raise HTTPException(401, "No token provided")
    identity = auth_service.identity_from_token(credentials.credentials)
    if not identity:
        raise HTTPException(401, "Invalid token")
    return identity


@router.get("/me")
def me(identity: Identity = Depends(get_identity)):
    return {"user_id": identity.user_id, "role": identity.role}
