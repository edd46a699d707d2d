"""Exceptions raised by the credential, session and key-value store layers."""


class StoreUnavailableError(Exception):
    """
    Raised when the key-value store cannot be reached or times out.

    Session checks treat this as a denial (fail closed). Profile cache callers
    catch it and fall back to the database (fail open).
    """

    def __init__(self, operation: str, message: str = "") -> None:
        self.operation = operation
        super().__init__(f"Key-value store unavailable during {operation}: {message}".rstrip(": "))


class AuthenticationError(Exception):
    """Base class for failures that map to HTTP 401."""

    detail = "Not authenticated"


class MissingCredentialError(AuthenticationError):
    """No credential was presented with the request."""

    detail = "Access token required"


class InvalidCredentialError(AuthenticationError):
    """The credential failed signature, structure, or expiry checks."""

    detail = "Invalid token"


class ExpiredCredentialError(InvalidCredentialError):
    """The credential's embedded expiry has passed."""

    detail = "Token has expired"


class MalformedCredentialError(InvalidCredentialError):
    """The credential could not be decoded or lacks required claims."""


class SessionExpiredOrRevokedError(AuthenticationError):
    """
    The credential is valid but is not the session currently recorded for the user.

    Raised after logout, after the session TTL lapses, and for every credential
    superseded by a newer login.
    """

    detail = "Invalid or expired session"


class UserNotFoundError(Exception):
    """The authenticated user no longer exists in the database."""

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")
