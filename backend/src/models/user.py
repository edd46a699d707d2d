"""User model: the authoritative record behind profiles and sessions."""
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.connection import Connection


class UserRole(StrEnum):
    """Account role."""

    USER = "USER"
    ADMIN = "ADMIN"


class User(Base, TimestampMixin):
    """User account. password_hash never leaves the service layer."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    username: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    first_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    profile_pic: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    avatar: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    website: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    role: Mapped[str] = mapped_column(String(10), default=UserRole.USER, server_default="USER")

    sent_connections: Mapped[list["Connection"]] = relationship(
        back_populates="sender",
        foreign_keys="Connection.sender_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    received_connections: Mapped[list["Connection"]] = relationship(
        back_populates="receiver",
        foreign_keys="Connection.receiver_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
