"""Shared exceptions for service layer operations."""


class DuplicateUserError(Exception):
    """Raised when signup uses an email or username that is already registered."""

    def __init__(self, message: str = "User with this email or username already exists") -> None:
        super().__init__(message)


class InvalidLoginError(Exception):
    """Raised when an email/password pair does not match an account."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class NotFoundError(Exception):
    """Raised when a connection record does not exist."""

    def __init__(self, connection_id: int) -> None:
        self.connection_id = connection_id
        super().__init__(f"Connection not found: {connection_id}")


class PeerNotFoundError(Exception):
    """Raised when a connection request targets a user that does not exist."""

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class NotAuthorizedError(Exception):
    """Raised when the acting user is not allowed to change a connection."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConnectionConflictError(Exception):
    """
    Base exception for requests that conflict with a connection's current state.

    All subclasses map to HTTP 409.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


class SelfConnectionError(ConnectionConflictError):
    """Raised when a user sends a connection request to themselves."""

    def __init__(self) -> None:
        super().__init__("Cannot send connection request to yourself")


class DuplicatePendingError(ConnectionConflictError):
    """Raised when a pending request already exists between the pair, in either direction."""

    def __init__(self, connection_id: int | None = None) -> None:
        self.connection_id = connection_id
        super().__init__("Connection request already pending")


class AlreadyConnectedError(ConnectionConflictError):
    """Raised when the pair is already connected."""

    def __init__(self, connection_id: int | None = None) -> None:
        self.connection_id = connection_id
        super().__init__("Already connected with this user")


class InvalidStateError(ConnectionConflictError):
    """
    Raised when an operation is invalid for a connection's current state.

    Accepting or rejecting a record that is no longer PENDING, including the
    loser of two concurrent resolutions of the same record.
    """

    def __init__(self, message: str = "Connection request is not pending") -> None:
        super().__init__(message)
