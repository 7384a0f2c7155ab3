"""Account mode on a real database: users, refresh tokens and the SQL key-value store."""

from datetime import date, datetime, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel
from starlette.requests import Request

from schedule_app.api import deps
from schedule_app.core.config import settings
from schedule_app.core.db import get_session
from schedule_app.core.exceptions import AuthError
from schedule_app.main import app
from schedule_app.models.identity import LOCAL_IDENTITY, Identity
from schedule_app.services.appointment_service import AppointmentRepository
from schedule_app.services.auth_service import authenticate, issue_token_pair, refresh_tokens, register
from schedule_app.services.identity_service import AccountIdentityProvider, LocalIdentityProvider
from schedule_app.services.store_service import SqlKeyValueStore

NOW = datetime(2024, 6, 10, 10, 15)
EMAIL = "owner@example.com"
PASSWORD = "secret-pass"


class TestSqlKeyValueStore:
    async def test_set_get_remove(self, db_session):
        store = SqlKeyValueStore(db_session)
        assert await store.get("appointments:1") is None

        await store.set("appointments:1", "[]")
        await store.set("appointments:1", '[{"id": "1"}]')
        assert await store.get("appointments:1") == '[{"id": "1"}]'

        await store.remove("appointments:1")
        assert await store.get("appointments:1") is None
        await store.remove("appointments:1")

    async def test_repository_roundtrip(self, db_session, make_create):
        """Appointments written through the SQL store load back unchanged."""
        identity = Identity(uid="1")
        repository = await AppointmentRepository(SqlKeyValueStore(db_session), identity).load()
        created = await repository.add(make_create(day=date(2024, 6, 10), start=time(9, 30)))
        await repository.toggle_unavailable(date(2024, 6, 11))

        reloaded = await AppointmentRepository(SqlKeyValueStore(db_session), identity).load()
        assert [a.id for a in reloaded.appointments] == [created.id]
        assert reloaded.unavailable_dates == [date(2024, 6, 11)]


class TestAuthService:
    async def test_register_and_authenticate(self, db_session):
        user = await register(db_session, EMAIL, PASSWORD)
        assert (await authenticate(db_session, EMAIL, PASSWORD)).id == user.id
        with pytest.raises(AuthError):
            await authenticate(db_session, EMAIL, "wrong")
        with pytest.raises(AuthError):
            await register(db_session, EMAIL, PASSWORD)

    async def test_refresh_rotation(self, db_session):
        user = await register(db_session, EMAIL, PASSWORD)
        _, first_refresh, _ = await issue_token_pair(db_session, user.id)

        rotated = await refresh_tokens(db_session, first_refresh)
        assert rotated is not None
        assert await refresh_tokens(db_session, first_refresh) is None

        _, second_refresh, _ = rotated
        await AccountIdentityProvider(db_session).sign_out(second_refresh)
        assert await refresh_tokens(db_session, second_refresh) is None

    async def test_provider_resolves_access_tokens(self, db_session):
        provider = AccountIdentityProvider(db_session)
        identity = await provider.sign_up(EMAIL, PASSWORD)
        access, _, _ = await issue_token_pair(db_session, int(identity.uid))

        assert await provider.resolve(access) == identity
        assert await provider.resolve("not-a-token") is None
        assert await provider.resolve(None) is None


class TestAuthSessionDependency:
    async def test_identity_changes_are_recorded_on_request(self, store):
        request = Request({"type": "http"})
        calendar_session = deps.get_auth_session(request, LocalIdentityProvider(), store)

        await calendar_session.sign_in(EMAIL, PASSWORD)
        assert request.state.identity == LOCAL_IDENTITY

        await calendar_session.sign_out()
        assert request.state.identity is None


@pytest.fixture
def account_client(tmp_path, monkeypatch):
    """API client in account mode over a fresh SQLite database."""
    monkeypatch.setattr(settings, "auth_mode", "account")
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'accounts.db'}", poolclass=NullPool)
    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    schema_ready = False

    async def sqlite_session():
        nonlocal schema_ready
        if not schema_ready:
            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            schema_ready = True
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = sqlite_session
    app.dependency_overrides[deps.get_now] = lambda: NOW
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def signup(client, email=EMAIL, password=PASSWORD):
    return client.post("/api/v1/auth/signup", json={"email": email, "password": password})


class TestAccountApi:
    def test_signup_then_duplicate(self, account_client):
        resp = signup(account_client)
        assert resp.status_code == 200
        assert resp.json()["token_type"] == "bearer"
        assert signup(account_client).status_code == 409

    def test_login(self, account_client):
        signup(account_client)
        ok = account_client.post("/api/v1/auth/login", json={"email": EMAIL, "password": PASSWORD})
        assert ok.status_code == 200
        bad = account_client.post("/api/v1/auth/login", json={"email": EMAIL, "password": "wrong-pass"})
        assert bad.status_code == 401

    def test_me_requires_token(self, account_client):
        access = signup(account_client).json()["access_token"]
        assert account_client.get("/api/v1/auth/me").status_code == 401
        me = account_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {access}"})
        assert me.json() == {"uid": "1", "email": EMAIL}

    def test_refresh_rotates(self, account_client):
        first = signup(account_client).json()["refresh_token"]

        rotated = account_client.post("/api/v1/auth/refresh", headers={"X-Refresh-Token": first})
        assert rotated.status_code == 200
        assert rotated.json()["refresh_token"] != first

        reused = account_client.post("/api/v1/auth/refresh", headers={"X-Refresh-Token": first})
        assert reused.status_code == 401

    def test_logout_revokes_refresh_token(self, account_client):
        refresh = signup(account_client).json()["refresh_token"]
        assert account_client.post("/api/v1/auth/logout", headers={"X-Refresh-Token": refresh}).status_code == 200
        resp = account_client.post("/api/v1/auth/refresh", json={"refresh_token": refresh})
        assert resp.status_code == 401

    def test_appointments_persist_per_account(self, account_client):
        """Writes go through the kv_entries table and stay with their owner."""
        owner = {"Authorization": f"Bearer {signup(account_client).json()['access_token']}"}
        other_token = signup(account_client, email="other@example.com").json()["access_token"]
        other = {"Authorization": f"Bearer {other_token}"}

        created = account_client.post(
            "/api/v1/appointments",
            json={"date": "2024-06-10", "time": "13:00", "duration_minutes": 60, "display_name": "田中"},
            headers=owner,
        )
        assert created.status_code == 201
        toggled = account_client.post("/api/v1/unavailable-dates/2024-06-12/toggle", headers=owner)
        assert toggled.json()["unavailable"] is True

        listed = account_client.get("/api/v1/appointments", headers=owner).json()
        assert [a["id"] for a in listed] == [created.json()["id"]]
        assert account_client.get("/api/v1/appointments", headers=other).json() == []
        assert account_client.get("/api/v1/appointments").status_code == 401
