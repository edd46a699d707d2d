"""SQLAlchemy models."""
from models.base import Base, TimestampMixin
from models.connection import Connection, ConnectionStatus
from models.user import User, UserRole

__all__ = [
    "Base",
    "Connection",
    "ConnectionStatus",
    "TimestampMixin",
    "User",
    "UserRole",
]
