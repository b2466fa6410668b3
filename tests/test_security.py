"""
Tests for bearer token validation and role capabilities.
"""

from datetime import datetime, timezone, timedelta

import jwt
import pytest
from fastapi import HTTPException
from httpx import AsyncClient

from community_events.core.config import get_settings
from community_events.core.security import (
    Capability,
    Principal,
    Role,
    create_access_token,
    decode_principal,
)


@pytest.mark.parametrize(
    "role, capability, allowed",
    [
        (Role.ADMIN, Capability.RECONCILE, True),
        (Role.ADMIN, Capability.MANAGE_EVENTS, True),
        (Role.SUB_ADMIN, Capability.MANAGE_EVENTS, True),
        (Role.SUB_ADMIN, Capability.RECONCILE, False),
        (Role.MANAGER, Capability.VIEW_REGISTRATIONS, True),
        (Role.MANAGER, Capability.MANAGE_REGISTRATIONS, False),
        (Role.MANAGER, Capability.MANAGE_EVENTS, False),
    ],
)
def test_role_capabilities(role, capability, allowed):
    assert Principal(subject="someone", role=role).can(capability) is allowed


def test_token_round_trip():
    principal = decode_principal(create_access_token("admin-7", Role.SUB_ADMIN))

    assert principal.subject == "admin-7"
    assert principal.role is Role.SUB_ADMIN


def test_expired_token_rejected():
    token = create_access_token("admin-7", Role.ADMIN, expires_delta=timedelta(minutes=-1))

    with pytest.raises(HTTPException) as exc_info:
        decode_principal(token)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Token has expired"


def test_unknown_role_rejected():
    settings = get_settings()
    token = jwt.encode(
        {"sub": "x", "role": "superuser", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )

    with pytest.raises(HTTPException) as exc_info:
        decode_principal(token)
    assert exc_info.value.status_code == 401


def test_wrong_signature_rejected():
    token = jwt.encode(
        {"sub": "x", "role": "admin", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "some-other-secret",
        algorithm="HS256",
    )

    with pytest.raises(HTTPException) as exc_info:
        decode_principal(token)
    assert exc_info.value.detail == "Invalid token"


@pytest.mark.asyncio
async def test_garbage_bearer_token(client: AsyncClient):
    response = await client.get(
        "/api/v1/events/registrations", headers={"Authorization": "Bearer not.a.jwt"}
    )
    assert response.status_code == 401
