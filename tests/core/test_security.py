"""
Token tests
"""
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from jose import jwt

from app.core.config import settings
from app.core.exceptions import AuthenticationException
from app.core.security import create_access_token, decode_access_token, resolve_user

ME = "/api/v1/auth/me"


@pytest.mark.asyncio
async def test_token_round_trip(factory):
    doctor = await factory.create_user("doctor")

    subject = decode_access_token(create_access_token(doctor))
    assert subject.user_id == doctor.id
    assert subject.role == "doctor"
    assert subject.email == doctor.email


def test_expired_token_rejected():
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    token = jwt.encode(
        {"sub": "u1", "exp": past}, settings.jwt_secret, algorithm=settings.jwt_algorithm
    )
    with pytest.raises(AuthenticationException) as exc:
        decode_access_token(token)
    assert exc.value.message == "Token has expired"


def test_wrong_secret_rejected():
    token = jwt.encode({"sub": "u1"}, "another-secret", algorithm=settings.jwt_algorithm)
    with pytest.raises(AuthenticationException) as exc:
        decode_access_token(token)
    assert exc.value.message == "Invalid token"


def test_missing_subject_rejected():
    token = jwt.encode({"role": "admin"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    with pytest.raises(AuthenticationException):
        decode_access_token(token)


@pytest.mark.asyncio
async def test_resolve_unknown_user(db_session):
    token = jwt.encode({"sub": "ghost"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    with pytest.raises(AuthenticationException) as exc:
        await resolve_user(db_session, token)
    assert exc.value.message == "User not found"


@pytest.mark.asyncio
async def test_bearer_header_variants(client: AsyncClient, factory):
    nurse = await factory.create_user("staff")
    token = factory.token(nurse)

    resp = await client.get(ME, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200

    resp = await client.get(ME, headers={"Authorization": f"Basic {token}"})
    assert resp.status_code == 401

    resp = await client.get(ME)
    assert resp.status_code == 401
    assert resp.json()["error"] == "authentication_error"
