"""Signup, login, and logout endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    AuthenticatedUser,
    get_async_session,
    get_credential_issuer,
    get_optional_user,
    get_session_authority,
    get_settings,
    limit_auth_attempts,
)
from core.config import Settings
from core.credentials import CredentialIssuer, IssuedCredential
from core.exceptions import StoreUnavailableError
from core.sessions import SessionAuthority
from schemas.envelope import ApiResponse
from schemas.user import AuthPayload, LoginRequest, SignupRequest, UserProfile
from services import auth_service, user_service
from services.exceptions import DuplicateUserError, InvalidLoginError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


async def _start_session(
    issuer: CredentialIssuer,
    sessions: SessionAuthority,
    user_id: int,
) -> IssuedCredential:
    """Start a session, turning a session-store outage into a 503."""
    try:
        return await auth_service.start_session(issuer, sessions, user_id)
    except StoreUnavailableError as e:
        logger.error("session_establish_failed", extra={"user_id": user_id, "operation": e.operation})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session service unavailable, try again later",
        )


@router.post(
    "/signup",
    response_model=ApiResponse[AuthPayload],
    status_code=201,
    dependencies=[Depends(limit_auth_attempts)],
)
async def signup(
    data: SignupRequest,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
    sessions: SessionAuthority = Depends(get_session_authority),
) -> ApiResponse[AuthPayload]:
    """Create an account and start its first session."""
    try:
        user = await user_service.create_user(db, data, bcrypt_rounds=settings.bcrypt_rounds)
    except DuplicateUserError as e:
        raise HTTPException(status_code=409, detail=str(e))

    credential = await _start_session(issuer, sessions, user.id)
    return ApiResponse(
        message="User created successfully",
        data=AuthPayload(
            user=UserProfile.model_validate(user),
            token=credential.token,
            expires_at=credential.expires_at,
        ),
    )


@router.post(
    "/login",
    response_model=ApiResponse[AuthPayload],
    dependencies=[Depends(limit_auth_attempts)],
)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
    sessions: SessionAuthority = Depends(get_session_authority),
) -> ApiResponse[AuthPayload]:
    """
    Verify the password and start a new session.

    The new session supersedes any existing one: credentials from earlier
    logins stop working immediately.
    """
    try:
        user = await user_service.authenticate(
            db, data.email, data.password, bcrypt_rounds=settings.bcrypt_rounds,
        )
    except InvalidLoginError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )

    credential = await _start_session(issuer, sessions, user.id)
    return ApiResponse(
        message="Login successful",
        data=AuthPayload(
            user=UserProfile.model_validate(user),
            token=credential.token,
            expires_at=credential.expires_at,
        ),
    )


@router.post("/logout", response_model=ApiResponse[None])
async def logout(
    current_user: AuthenticatedUser | None = Depends(get_optional_user),
    sessions: SessionAuthority = Depends(get_session_authority),
) -> ApiResponse[None]:
    """
    Best-effort logout. Always returns 200.

    Only a credential that is still the user's current session revokes it,
    so a stale token from a superseded login cannot end the newer session.
    """
    if current_user is not None:
        try:
            await auth_service.end_session(sessions, current_user.id)
        except StoreUnavailableError:
            logger.warning("session_revoke_failed", extra={"user_id": current_user.id})
    return ApiResponse(message="Logged out successfully")
