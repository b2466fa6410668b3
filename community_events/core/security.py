"""
Access control for administrative endpoints.

Credentials are verified by the external identity service, which issues
HS256 bearer tokens carrying ``sub`` and ``role`` claims. This module only
validates the signature, maps the role onto a closed enumeration and checks
capabilities. Routes ask for a capability, never for a role string.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from community_events.core.config import get_settings
from community_events.core.logging import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class Role(str, Enum):
    ADMIN = "admin"
    SUB_ADMIN = "sub_admin"
    MANAGER = "manager"


class Capability(str, Enum):
    MANAGE_EVENTS = "manage_events"
    VIEW_REGISTRATIONS = "view_registrations"
    MANAGE_REGISTRATIONS = "manage_registrations"
    RECONCILE = "reconcile"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.ADMIN: frozenset(Capability),
    Role.SUB_ADMIN: frozenset({
        Capability.MANAGE_EVENTS,
        Capability.VIEW_REGISTRATIONS,
        Capability.MANAGE_REGISTRATIONS,
    }),
    Role.MANAGER: frozenset({Capability.VIEW_REGISTRATIONS}),
}


@dataclass(frozen=True)
class Principal:
    subject: str
    role: Role

    @property
    def capabilities(self) -> frozenset[Capability]:
        return ROLE_CAPABILITIES[self.role]

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities


def create_access_token(subject: str, role: Role, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a token the way the identity service does. Used by tests and tooling."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {"sub": subject, "role": Role(role).value, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_principal(token: str) -> Principal:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = payload.get("sub")
    try:
        role = Role(payload.get("role"))
    except ValueError:
        role = None
    if not subject or role is None:
        logger.warning("token_rejected", reason="missing_claims", role=payload.get("role"))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is missing subject or role",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Principal(subject=str(subject), role=role)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_principal(credentials.credentials)


def require_capability(capability: Capability):
    """Dependency factory: the caller must hold ``capability``."""

    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.can(capability):
            logger.warning(
                "access_denied",
                subject=principal.subject,
                role=principal.role.value,
                capability=capability.value,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{principal.role.value}' lacks '{capability.value}'",
            )
        return principal

    return dependency
