"""
Request authorization: credential verification plus the live session check.

AccessGate.authorize() is the whole contract for a protected request:

1. no credential                          -> MissingCredentialError
2. signature/expiry/structure invalid     -> InvalidCredentialError
3. no recorded session, or a different one -> SessionExpiredOrRevokedError
   (session store unreachable             -> StoreUnavailableError, deny)
4. user row gone                          -> UserNotFoundError
5. otherwise an AuthenticatedUser value the route receives via Depends.

The FastAPI dependencies at the bottom translate those failures to HTTP
responses. get_optional_user() runs the same checks and yields None instead.
"""
import logging
from dataclasses import dataclass
from functools import partial

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from core.credentials import CredentialIssuer
from core.exceptions import (
    AuthenticationError,
    MissingCredentialError,
    SessionExpiredOrRevokedError,
    StoreUnavailableError,
    UserNotFoundError,
)
from core.profile_cache import ProfileCache, ProfileLoader
from core.redis import KeyValueStore, RedisClient, get_redis_client
from core.sessions import SessionAuthority
from db.session import get_async_session
from schemas.user import UserProfile
from services import user_service

logger = logging.getLogger(__name__)


# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)

# Stands in when no Redis client was configured at startup. Every operation
# raises StoreUnavailableError, so sessions fail closed and the cache fails open.
_DISCONNECTED_STORE = RedisClient("", enabled=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity resolved for a request, passed explicitly to route handlers."""

    id: int
    profile: UserProfile
    credential: str


class AccessGate:
    """Per-request authorization check."""

    def __init__(
        self,
        issuer: CredentialIssuer,
        sessions: SessionAuthority,
        load_profile: ProfileLoader,
    ) -> None:
        self._issuer = issuer
        self._sessions = sessions
        self._load_profile = load_profile

    async def authorize(self, credential: str | None) -> AuthenticatedUser:
        """
        Authorize a presented credential.

        Raises:
            MissingCredentialError: If no credential was presented.
            InvalidCredentialError: If the credential does not verify.
            SessionExpiredOrRevokedError: If it is not the user's current session.
            StoreUnavailableError: If the session store cannot be consulted.
            UserNotFoundError: If the user was deleted after the session began.
        """
        if not credential:
            raise MissingCredentialError

        user_id = self._issuer.verify(credential)

        if not await self._sessions.matches(user_id, credential):
            raise SessionExpiredOrRevokedError

        # The existence check always goes to the database so a user deleted
        # mid-session is caught even while their profile is still cached
        profile = await self._load_profile(user_id)
        if profile is None:
            raise UserNotFoundError(user_id)

        return AuthenticatedUser(id=user_id, profile=profile, credential=credential)

    async def try_authorize(self, credential: str | None) -> AuthenticatedUser | None:
        """Same checks as authorize(), returning None on any failure."""
        try:
            return await self.authorize(credential)
        except (AuthenticationError, StoreUnavailableError, UserNotFoundError):
            return None


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------


def get_key_value_store() -> KeyValueStore:
    """Return the shared key-value store. Overridden in tests with an in-memory fake."""
    return get_redis_client() or _DISCONNECTED_STORE


def get_credential_issuer(settings: Settings = Depends(get_settings)) -> CredentialIssuer:
    """Build the credential issuer from settings."""
    return CredentialIssuer.from_settings(settings)


def get_session_authority(
    store: KeyValueStore = Depends(get_key_value_store),
) -> SessionAuthority:
    """Session authority over the shared store."""
    return SessionAuthority(store)


def get_profile_cache(
    store: KeyValueStore = Depends(get_key_value_store),
    settings: Settings = Depends(get_settings),
) -> ProfileCache:
    """Profile cache over the shared store."""
    return ProfileCache(store, ttl=settings.profile_cache_ttl)


def get_access_gate(
    issuer: CredentialIssuer = Depends(get_credential_issuer),
    sessions: SessionAuthority = Depends(get_session_authority),
    db: AsyncSession = Depends(get_async_session),
) -> AccessGate:
    """Access gate bound to this request's database session."""
    return AccessGate(issuer, sessions, partial(user_service.get_profile, db))


def _bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str | None:
    return credentials.credentials if credentials is not None else None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    gate: AccessGate = Depends(get_access_gate),
) -> AuthenticatedUser:
    """Dependency that requires an authenticated caller with a live session."""
    try:
        return await gate.authorize(_bearer_token(credentials))
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
    except StoreUnavailableError as e:
        # Fail closed: without the session record the credential cannot be trusted
        logger.warning("session_store_unavailable", extra={"operation": e.operation})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate session",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    gate: AccessGate = Depends(get_access_gate),
) -> AuthenticatedUser | None:
    """Dependency for endpoints that serve both anonymous and identified callers."""
    return await gate.try_authorize(_bearer_token(credentials))
