from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from coachslots.core.config import settings

COACH_ROLES = frozenset({"coach", "super_coach", "admin"})


@dataclass(frozen=True)
class Principal:
    """Identity carried by an access token."""

    user_id: str
    organization_id: str | None
    role: str | None = None

    @property
    def is_coach(self) -> bool:
        return self.role in COACH_ROLES


def create_access_token(
    subject: str | int,
    organization_id: str | None = None,
    role: str | None = None,
) -> str:
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {"sub": str(subject), "exp": expire, "type": "access"}
    if organization_id:
        to_encode["org_id"] = organization_id
    if role:
        to_encode["role"] = role
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Principal | None:
    try:
        payload = jwt.decode(
            token, settings.secret_key, algorithms=[settings.algorithm]
        )
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    sub = payload.get("sub")
    if not sub:
        return None
    return Principal(
        user_id=str(sub),
        organization_id=payload.get("org_id") or None,
        role=payload.get("role"),
    )
