from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from coachslots.core.db import get_session
from coachslots.core.security import Principal, decode_access_token

security = HTTPBearer(auto_error=False)

__all__ = ["get_session", "get_current_principal", "require_organization", "require_coach"]


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Principal:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    principal = decode_access_token(credentials.credentials)
    if not principal:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


async def require_organization(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    if not principal.organization_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Organization context required",
        )
    return principal


async def require_coach(
    principal: Principal = Depends(require_organization),
) -> Principal:
    if not principal.is_coach:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Coach access required",
        )
    return principal
