from __future__ import annotations

from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi import HTTPException
from jose import JWTError

from studio.core.auth import (
    AuthContext,
    JwksCache,
    _decode_clerk_jwt,
    _get_signing_key,
    require_auth_context,
    require_staff,
)
from studio.core.context import get_current_organization_id, set_current_organization_id


def _ctx(*, role: str = "TRAINER") -> AuthContext:
    return AuthContext(
        organization_id=uuid4(),
        user_id=uuid4(),
        role=role,
        subject="user_1",
        org_id="org_123",
    )


class _Session:
    """Returns queued rows for successive ``scalar`` calls."""

    def __init__(self, *rows: object) -> None:
        self._rows = list(rows)

    async def scalar(self, _stmt):  # noqa: ANN001
        return self._rows.pop(0) if self._rows else None


@pytest.mark.asyncio
async def test_require_staff_allows_staff_roles() -> None:
    for role in ("SUPER_ADMIN", "ADMIN", "TRAINER", "trainer"):
        ctx = _ctx(role=role)
        assert await require_staff(ctx) is ctx


@pytest.mark.asyncio
async def test_require_staff_blocks_students() -> None:
    with pytest.raises(HTTPException) as exc:
        await require_staff(_ctx(role="STUDENT"))

    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_require_staff_follows_configured_roles(monkeypatch: pytest.MonkeyPatch) -> None:
    from studio.core import auth

    monkeypatch.setattr(auth.settings, "staff_roles_csv", "ADMIN")
    with pytest.raises(HTTPException):
        await require_staff(_ctx(role="TRAINER"))


def test_get_signing_key_missing_kid(monkeypatch: pytest.MonkeyPatch) -> None:
    from studio.core import auth

    monkeypatch.setattr(auth.jwt, "get_unverified_header", lambda token: {})
    with pytest.raises(HTTPException) as exc:
        _get_signing_key("token")
    assert exc.value.status_code == 401


def test_get_signing_key_no_matching_key(monkeypatch: pytest.MonkeyPatch) -> None:
    from studio.core import auth

    monkeypatch.setattr(auth.jwt, "get_unverified_header", lambda token: {"kid": "abc"})
    monkeypatch.setattr(auth.jwks_cache, "get", lambda url: {"keys": [{"kid": "zzz"}]})

    with pytest.raises(HTTPException) as exc:
        _get_signing_key("token")
    assert exc.value.status_code == 401


def test_get_signing_key_returns_matching_key(monkeypatch: pytest.MonkeyPatch) -> None:
    from studio.core import auth

    monkeypatch.setattr(auth.jwt, "get_unverified_header", lambda token: {"kid": "abc"})
    monkeypatch.setattr(auth.jwks_cache, "get", lambda url: {"keys": [{"kid": "abc", "kty": "RSA"}]})
    key = _get_signing_key("token")
    assert key["kid"] == "abc"


def test_get_signing_key_invalid_header(monkeypatch: pytest.MonkeyPatch) -> None:
    from studio.core import auth

    def _bad_header(_token: str) -> dict:
        raise JWTError("invalid header")

    monkeypatch.setattr(auth.jwt, "get_unverified_header", _bad_header)
    with pytest.raises(HTTPException) as exc:
        _get_signing_key("token")
    assert exc.value.status_code == 401


def test_decode_clerk_jwt_invalid(monkeypatch: pytest.MonkeyPatch) -> None:
    from studio.core import auth

    monkeypatch.setattr(auth, "_get_signing_key", lambda token: {"kid": "abc"})

    def _boom(*args, **kwargs):  # noqa: ANN002, ANN003
        raise JWTError("bad token")

    monkeypatch.setattr(auth.jwt, "decode", _boom)
    with pytest.raises(HTTPException) as exc:
        _decode_clerk_jwt("token")
    assert exc.value.status_code == 401


def test_jwks_cache_fetches_and_reuses(monkeypatch: pytest.MonkeyPatch) -> None:
    from studio.core import auth

    calls = {"count": 0}

    class _Resp:
        def raise_for_status(self) -> None:
            return None

        def json(self) -> dict:
            return {"keys": [{"kid": "a"}]}

    def _get(url: str, timeout: int):  # noqa: ANN001
        calls["count"] += 1
        return _Resp()

    cache = JwksCache(ttl_seconds=300)
    monkeypatch.setattr(auth.requests, "get", _get)
    monkeypatch.setattr(auth.time, "time", lambda: 1000.0)
    first = cache.get("https://jwks.example")
    second = cache.get("https://jwks.example")
    assert first == second
    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_require_auth_context_resolves_organization_and_user(monkeypatch: pytest.MonkeyPatch) -> None:
    from studio.core import auth

    organization = SimpleNamespace(id=uuid4())
    user = SimpleNamespace(id=uuid4(), role="ADMIN")
    monkeypatch.setattr(
        auth,
        "_decode_clerk_jwt",
        lambda _token: {"org_id": "org_1", "sub": "user_1"},
    )

    request = SimpleNamespace(state=SimpleNamespace())
    credentials = SimpleNamespace(credentials="jwt")
    context = await require_auth_context(request, credentials, _Session(organization, user))

    assert context.organization_id == organization.id
    assert context.user_id == user.id
    assert context.role == "ADMIN"
    assert context.org_id == "org_1"
    assert request.state.organization_id == organization.id
    assert request.state.user_subject == "user_1"
    assert request.state.auth_claims["org_id"] == "org_1"
    assert get_current_organization_id() == organization.id
    set_current_organization_id(None)


@pytest.mark.asyncio
async def test_require_auth_context_missing_claims(monkeypatch: pytest.MonkeyPatch) -> None:
    from studio.core import auth

    request = SimpleNamespace(state=SimpleNamespace())
    credentials = SimpleNamespace(credentials="jwt")

    monkeypatch.setattr(auth, "_decode_clerk_jwt", lambda _token: {"sub": "user_1"})
    with pytest.raises(HTTPException) as exc:
        await require_auth_context(request, credentials, _Session())
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_require_auth_context_organization_not_provisioned(monkeypatch: pytest.MonkeyPatch) -> None:
    from studio.core import auth

    monkeypatch.setattr(
        auth,
        "_decode_clerk_jwt",
        lambda _token: {"org_id": "org_missing", "sub": "user_2"},
    )

    request = SimpleNamespace(state=SimpleNamespace())
    credentials = SimpleNamespace(credentials="jwt")
    with pytest.raises(HTTPException) as exc:
        await require_auth_context(request, credentials, _Session())
    assert exc.value.status_code == 403
    assert exc.value.detail == "Organization is not provisioned"


@pytest.mark.asyncio
async def test_require_auth_context_user_not_provisioned(monkeypatch: pytest.MonkeyPatch) -> None:
    from studio.core import auth

    monkeypatch.setattr(
        auth,
        "_decode_clerk_jwt",
        lambda _token: {"org_id": "org_1", "sub": "stranger"},
    )

    request = SimpleNamespace(state=SimpleNamespace())
    credentials = SimpleNamespace(credentials="jwt")
    with pytest.raises(HTTPException) as exc:
        await require_auth_context(request, credentials, _Session(SimpleNamespace(id=uuid4())))
    assert exc.value.status_code == 403
    assert not hasattr(request.state, "organization_id")
