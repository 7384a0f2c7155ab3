import logging
from collections.abc import Callable
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from schedule_app.core.exceptions import NotAuthenticatedError
from schedule_app.core.security import decode_access_token, decode_refresh_token
from schedule_app.models.identity import LOCAL_IDENTITY, Identity
from schedule_app.models.user import User
from schedule_app.services.appointment_service import AppointmentRepository
from schedule_app.services.auth_service import authenticate, get_user, register, revoke_refresh_token
from schedule_app.services.store_service import KeyValueStore

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Identity | None], None]


class IdentityProvider(Protocol):
    async def sign_up(self, email: str, password: str) -> Identity: ...

    async def sign_in(self, email: str, password: str) -> Identity: ...

    async def sign_out(self, refresh_token: str | None = None) -> None: ...

    async def resolve(self, access_token: str | None) -> Identity | None: ...


def identity_for(user: User) -> Identity:
    return Identity(uid=str(user.id), email=user.email)


class AccountIdentityProvider:
    """Email/password accounts in the ``users`` table; failures raise AuthError."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def sign_up(self, email: str, password: str) -> Identity:
        return identity_for(await register(self.session, email, password))

    async def sign_in(self, email: str, password: str) -> Identity:
        return identity_for(await authenticate(self.session, email, password))

    async def sign_out(self, refresh_token: str | None = None) -> None:
        if not refresh_token:
            return
        _, jti = decode_refresh_token(refresh_token)
        if jti:
            await revoke_refresh_token(self.session, jti)

    async def resolve(self, access_token: str | None) -> Identity | None:
        if not access_token:
            return None
        user_id = decode_access_token(access_token)
        if not user_id or not user_id.isdigit():
            return None
        user = await get_user(self.session, int(user_id))
        return identity_for(user) if user else None


class LocalIdentityProvider:
    """Single-user mode: everyone is the local identity."""

    async def sign_up(self, email: str, password: str) -> Identity:
        return LOCAL_IDENTITY

    async def sign_in(self, email: str, password: str) -> Identity:
        return LOCAL_IDENTITY

    async def sign_out(self, refresh_token: str | None = None) -> None:
        return None

    async def resolve(self, access_token: str | None) -> Identity | None:
        return LOCAL_IDENTITY


class CalendarSession:
    """Current identity plus the repository loaded for it.

    Every identity change (sign-in, sign-up, sign-out, or activating an
    identity resolved from a token) reloads or drops the repository and
    is then published to subscribers. A failed sign-in leaves the
    previous identity and repository in place.
    """

    def __init__(self, provider: IdentityProvider, store: KeyValueStore):
        self.provider = provider
        self.store = store
        self.identity: Identity | None = None
        self._repository: AppointmentRepository | None = None
        self._listeners: list[IdentityListener] = []

    @property
    def repository(self) -> AppointmentRepository:
        if self._repository is None:
            raise NotAuthenticatedError()
        return self._repository

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_up(self, email: str, password: str) -> Identity:
        identity = await self.provider.sign_up(email, password)
        await self.activate(identity)
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        identity = await self.provider.sign_in(email, password)
        await self.activate(identity)
        return identity

    async def sign_out(self, refresh_token: str | None = None) -> None:
        await self.provider.sign_out(refresh_token)
        await self.activate(None)

    async def activate(self, identity: Identity | None) -> None:
        repository = None
        if identity is not None:
            repository = await AppointmentRepository(self.store, identity).load()
        self.identity = identity
        self._repository = repository
        logger.info("Identity changed: %s", identity.uid if identity else None)
        for listener in list(self._listeners):
            listener(identity)
