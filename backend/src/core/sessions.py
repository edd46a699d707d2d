"""
Server-held session records: one authoritative credential per user.

A credential that verifies cryptographically is necessary but not sufficient
for access. It must also equal the credential recorded here for its user.
Recording a new credential therefore invalidates every earlier one, and
deleting the record is an immediate, server-side logout.
"""
import hmac
import json
import logging
from dataclasses import dataclass
from datetime import datetime

from core.redis import KeyValueStore

logger = logging.getLogger(__name__)

# Bump when Session fields change so old records are ignored until they expire.
SESSION_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class Session:
    """The single credential currently considered valid for a user."""

    user_id: int
    credential: str
    issued_at: datetime
    expires_at: datetime

    def to_json(self) -> str:
        """Serialize for storage."""
        return json.dumps({
            "user_id": self.user_id,
            "credential": self.credential,
            "issued_at": self.issued_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        })

    @classmethod
    def from_json(cls, data: bytes | str) -> "Session":
        """Deserialize a stored record."""
        d = json.loads(data)
        return cls(
            user_id=int(d["user_id"]),
            credential=d["credential"],
            issued_at=datetime.fromisoformat(d["issued_at"]),
            expires_at=datetime.fromisoformat(d["expires_at"]),
        )


class SessionAuthority:
    """
    Holds the per-user session record in the key-value store.

    Every method lets StoreUnavailableError propagate. Callers on the
    authorization path must treat it as a denial.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @staticmethod
    def _key(user_id: int) -> str:
        return f"session:v{SESSION_SCHEMA_VERSION}:{user_id}"

    async def establish(
        self,
        user_id: int,
        credential: str,
        issued_at: datetime,
        expires_at: datetime,
        ttl: int,
    ) -> Session:
        """
        Record credential as the user's only valid session.

        Unconditionally overwrites any existing record with a single SET, so
        concurrent logins for the same user leave exactly one complete record
        (the last writer wins) and never a half-written one.
        """
        session = Session(
            user_id=user_id,
            credential=credential,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        await self._store.set(self._key(user_id), session.to_json(), ttl)
        logger.info("session_established", extra={"user_id": user_id})
        return session

    async def lookup(self, user_id: int) -> Session | None:
        """Return the recorded session, or None if absent or unreadable."""
        data = await self._store.get(self._key(user_id))
        if data is None:
            return None
        try:
            return Session.from_json(data)
        except (ValueError, KeyError, TypeError):
            logger.warning("session_record_corrupt", extra={"user_id": user_id})
            return None

    async def revoke(self, user_id: int) -> None:
        """Remove the user's session. Revoking an absent session is a no-op."""
        await self._store.delete(self._key(user_id))
        logger.info("session_revoked", extra={"user_id": user_id})

    async def matches(self, user_id: int, credential: str) -> bool:
        """Whether credential is the one currently recorded for user_id."""
        session = await self.lookup(user_id)
        if session is None:
            return False
        return hmac.compare_digest(session.credential, credential)
