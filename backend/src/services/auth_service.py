"""Service layer tying credentials to sessions for signup, login, and logout."""
import logging

from core.credentials import CredentialIssuer, IssuedCredential
from core.sessions import SessionAuthority

logger = logging.getLogger(__name__)


async def start_session(
    issuer: CredentialIssuer,
    sessions: SessionAuthority,
    user_id: int,
) -> IssuedCredential:
    """
    Issue a credential and record it as the user's only session.

    Any credential issued earlier for the user stops authorizing requests
    as soon as this returns, even if it has not expired.

    Raises:
        StoreUnavailableError: If the session could not be recorded. No
            credential is handed out in that case.
    """
    credential = issuer.issue(user_id)
    await sessions.establish(
        user_id,
        credential.token,
        issued_at=credential.issued_at,
        expires_at=credential.expires_at,
        ttl=credential.ttl_seconds,
    )
    return credential


async def end_session(sessions: SessionAuthority, user_id: int) -> None:
    """Revoke the user's session. Safe to call when none exists."""
    await sessions.revoke(user_id)
