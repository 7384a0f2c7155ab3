from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schedule_app.core.config import settings
from schedule_app.core.exceptions import AuthError
from schedule_app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from schedule_app.models.refresh_token import RefreshToken, naive_utc
from schedule_app.models.user import User, UserCreate


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: int) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    user = User(email=data.email, hashed_password=hash_password(data.password))
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


async def authenticate(session: AsyncSession, email: str, password: str) -> User:
    user = await get_user_by_email(session, email)
    if not user or not verify_password(password, user.hashed_password):
        raise AuthError("Invalid email or password")
    return user


async def register(session: AsyncSession, email: str, password: str) -> User:
    if await get_user_by_email(session, email):
        raise AuthError("An account with this email already exists")
    return await create_user(session, UserCreate(email=email, password=password))


async def store_refresh_token(session: AsyncSession, user_id: int, refresh_token: str) -> None:
    user_id_str, jti = decode_refresh_token(refresh_token)
    if not user_id_str or not jti:
        return
    expires_at = naive_utc(datetime.now(UTC) + timedelta(days=settings.refresh_token_expire_days))
    session.add(RefreshToken(user_id=user_id, jti=jti, expires_at=expires_at))
    await session.flush()


async def issue_token_pair(session: AsyncSession, user_id: int) -> tuple[str, str, int]:
    """(access_token, refresh_token, expires_in_seconds); the refresh token is recorded for rotation."""
    access = create_access_token(user_id)
    refresh = create_refresh_token(user_id)
    await store_refresh_token(session, user_id=user_id, refresh_token=refresh)
    return access, refresh, settings.access_token_expire_minutes * 60


async def revoke_refresh_token(session: AsyncSession, jti: str) -> None:
    result = await session.execute(select(RefreshToken).where(RefreshToken.jti == jti))
    row = result.scalar_one_or_none()
    if row:
        row.revoked = True
        session.add(row)


async def refresh_tokens(session: AsyncSession, refresh_token: str) -> tuple[str, str, int] | None:
    """Rotate a refresh token: the presented one is revoked and a new pair issued."""
    user_id_str, jti = decode_refresh_token(refresh_token)
    if not user_id_str or not jti:
        return None
    result = await session.execute(
        select(RefreshToken).where(
            RefreshToken.jti == jti,
            RefreshToken.revoked == False,  # noqa: E712
            RefreshToken.expires_at > naive_utc(datetime.now(UTC)),
        )
    )
    token_row = result.scalar_one_or_none()
    if not token_row:
        return None
    user = await get_user(session, int(user_id_str))
    if not user:
        return None
    token_row.revoked = True
    session.add(token_row)
    return await issue_token_pair(session, user.id)
