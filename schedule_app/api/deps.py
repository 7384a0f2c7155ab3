from datetime import datetime

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from schedule_app.core.config import settings
from schedule_app.core.db import get_session
from schedule_app.models.identity import Identity
from schedule_app.services.appointment_service import AppointmentRepository
from schedule_app.services.confirmation_service import ConfirmationImageExporter
from schedule_app.services.identity_service import (
    AccountIdentityProvider,
    CalendarSession,
    IdentityProvider,
    LocalIdentityProvider,
)
from schedule_app.services.store_service import KeyValueStore, SqlKeyValueStore

security = HTTPBearer(auto_error=False)


def refresh_header(x_refresh_token: str | None = Header(default=None, alias="X-Refresh-Token")) -> str | None:
    """Extract X-Refresh-Token header for logout/refresh endpoints."""
    return x_refresh_token


def get_now() -> datetime:
    """Local wall-clock time."""
    return datetime.now()


def get_identity_provider(session: AsyncSession = Depends(get_session)) -> IdentityProvider:
    if settings.local_mode:
        return LocalIdentityProvider()
    return AccountIdentityProvider(session)


def get_store(session: AsyncSession = Depends(get_session)) -> KeyValueStore:
    return SqlKeyValueStore(session)


def get_exporter() -> ConfirmationImageExporter:
    return ConfirmationImageExporter()


async def get_current_identity(
    provider: IdentityProvider = Depends(get_identity_provider),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity:
    token = None
    if credentials and credentials.scheme.lower() == "bearer":
        token = credentials.credentials
    identity = await provider.resolve(token)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing, invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


def get_auth_session(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
    store: KeyValueStore = Depends(get_store),
) -> CalendarSession:
    """Session for this request; every identity change is recorded on ``request.state.identity``."""
    calendar_session = CalendarSession(provider, store)

    def remember(identity: Identity | None) -> None:
        request.state.identity = identity

    calendar_session.subscribe(remember)
    return calendar_session


async def get_calendar_session(
    calendar_session: CalendarSession = Depends(get_auth_session),
    identity: Identity = Depends(get_current_identity),
) -> CalendarSession:
    await calendar_session.activate(identity)
    return calendar_session


def get_repository(calendar_session: CalendarSession = Depends(get_calendar_session)) -> AppointmentRepository:
    return calendar_session.repository
