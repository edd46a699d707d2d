"""FastAPI dependencies for injection."""
from core.auth import (
    AuthenticatedUser,
    get_access_gate,
    get_credential_issuer,
    get_current_user,
    get_key_value_store,
    get_optional_user,
    get_profile_cache,
    get_session_authority,
)
from core.config import get_settings
from core.rate_limiter import get_window_counter, limit_auth_attempts
from db.session import get_async_session

__all__ = [
    "AuthenticatedUser",
    "get_access_gate",
    "get_async_session",
    "get_credential_issuer",
    "get_current_user",
    "get_key_value_store",
    "get_optional_user",
    "get_profile_cache",
    "get_session_authority",
    "get_settings",
    "get_window_counter",
    "limit_auth_attempts",
]
