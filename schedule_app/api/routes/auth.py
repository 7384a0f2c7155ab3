import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from schedule_app.api.deps import get_auth_session, get_current_identity, refresh_header
from schedule_app.api.schemas.auth import LoginRequest, RefreshRequest, SignupRequest, TokenPair
from schedule_app.core.config import settings
from schedule_app.core.db import get_session
from schedule_app.core.exceptions import AuthError
from schedule_app.models.identity import Identity
from schedule_app.services.auth_service import issue_token_pair, refresh_tokens
from schedule_app.services.identity_service import CalendarSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _require_account_mode() -> None:
    if settings.local_mode:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Sign-in is disabled (AUTH_MODE=local)",
        )


@router.post("/login", response_model=TokenPair)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
    calendar_session: CalendarSession = Depends(get_auth_session),
) -> TokenPair:
    _require_account_mode()
    try:
        identity = await calendar_session.sign_in(body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e
    access, refresh, expires_in = await issue_token_pair(session, int(identity.uid))
    logger.info("Signed in user %s", identity.uid)
    return TokenPair(access_token=access, refresh_token=refresh, expires_in=expires_in)


@router.post("/signup", response_model=TokenPair)
async def signup(
    body: SignupRequest,
    session: AsyncSession = Depends(get_session),
    calendar_session: CalendarSession = Depends(get_auth_session),
) -> TokenPair:
    _require_account_mode()
    try:
        identity = await calendar_session.sign_up(body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    access, refresh, expires_in = await issue_token_pair(session, int(identity.uid))
    logger.info("Registered user %s", identity.uid)
    return TokenPair(access_token=access, refresh_token=refresh, expires_in=expires_in)


@router.post("/refresh", response_model=TokenPair)
async def refresh(
    session: AsyncSession = Depends(get_session),
    x_refresh_token: str | None = Depends(refresh_header),
    body: RefreshRequest | None = None,
) -> TokenPair:
    _require_account_mode()
    token = x_refresh_token or (body.refresh_token if body else None)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token required (header X-Refresh-Token or body refresh_token)",
        )
    pair = await refresh_tokens(session, token)
    if not pair:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )
    access, refresh_token, expires_in = pair
    return TokenPair(access_token=access, refresh_token=refresh_token, expires_in=expires_in)


@router.post("/logout")
async def logout(
    calendar_session: CalendarSession = Depends(get_auth_session),
    x_refresh_token: str | None = Depends(refresh_header),
    body: RefreshRequest | None = None,
) -> dict:
    token = x_refresh_token or (body.refresh_token if body else None)
    await calendar_session.sign_out(token)
    return {"message": "Logged out"}


@router.get("/me", response_model=Identity)
async def me(identity: Identity = Depends(get_current_identity)) -> Identity:
    return identity
