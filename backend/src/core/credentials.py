"""
Credential issuing and verification.

Credentials are HS256 JWTs carrying the user id as the subject claim and an
embedded expiry. Issuing and verifying are purely computational: nothing here
reads or writes the session store, so a verified credential only proves that
this server signed it for that user at some point. Whether it is still the
user's current session is decided by SessionAuthority.
"""
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

from core.config import Settings
from core.exceptions import ExpiredCredentialError, MalformedCredentialError

ALGORITHM = "HS256"


@dataclass(frozen=True)
class IssuedCredential:
    """A freshly signed credential and the window it is valid for."""

    token: str
    user_id: int
    issued_at: datetime
    expires_at: datetime

    @property
    def ttl_seconds(self) -> int:
        """Remaining lifetime in whole seconds at issue time."""
        return int((self.expires_at - self.issued_at).total_seconds())


class CredentialIssuer:
    """Stateless signer/verifier for time-bounded user credentials."""

    def __init__(self, secret: str, expire_seconds: int) -> None:
        self._secret = secret
        self._expire_seconds = expire_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialIssuer":
        """Build an issuer from application settings."""
        return cls(settings.jwt_secret, settings.jwt_expire_seconds)

    def issue(self, user_id: int, now: datetime | None = None) -> IssuedCredential:
        """
        Sign a credential for user_id.

        A random jti makes every credential unique, so two logins within the
        same second still produce distinct tokens and the older one can be
        told apart from the session that superseded it.
        """
        issued_at = (now or datetime.now(UTC)).replace(microsecond=0)
        expires_at = issued_at + timedelta(seconds=self._expire_seconds)
        payload = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": expires_at,
            "jti": secrets.token_hex(8),
        }
        token = jwt.encode(payload, self._secret, algorithm=ALGORITHM)
        return IssuedCredential(
            token=token,
            user_id=user_id,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def verify(self, token: str) -> int:
        """
        Verify signature and expiry, returning the user id.

        Raises:
            ExpiredCredentialError: If the embedded expiry has passed.
            MalformedCredentialError: If the token is not a valid credential.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredCredentialError(str(e)) from e
        except jwt.PyJWTError as e:
            raise MalformedCredentialError(str(e)) from e

        try:
            return int(payload["sub"])
        except (TypeError, ValueError) as e:
            raise MalformedCredentialError("Subject claim is not a user id") from e
