"""Connection model: a directed request that becomes an undirected link once accepted."""
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.user import User


class ConnectionStatus(StrEnum):
    """Lifecycle of a connection record. ACCEPTED and REJECTED are terminal."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class Connection(Base, TimestampMixin):
    """
    Connection between two users, created PENDING by the sender.

    active_pair holds the canonical "<low id>:<high id>" key while the record
    is PENDING or ACCEPTED and is NULL once REJECTED. Its unique constraint is
    what makes request creation atomic per unordered pair: two simultaneous
    requests in opposite directions map to the same key and only one insert
    can succeed. NULLs never collide, so any number of REJECTED records may
    exist for a pair.
    """

    __tablename__ = "connections"

    id: Mapped[int] = mapped_column(primary_key=True)
    sender_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    receiver_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    status: Mapped[str] = mapped_column(String(10), default=ConnectionStatus.PENDING)
    active_pair: Mapped[str | None] = mapped_column(String(64), nullable=True)

    sender: Mapped["User"] = relationship(
        back_populates="sent_connections",
        foreign_keys=[sender_id],
    )
    receiver: Mapped["User"] = relationship(
        back_populates="received_connections",
        foreign_keys=[receiver_id],
    )

    __table_args__ = (
        UniqueConstraint("active_pair", name="uq_connection_active_pair"),
        CheckConstraint("sender_id <> receiver_id", name="ck_connection_no_self"),
        CheckConstraint(
            "status IN ('PENDING', 'ACCEPTED', 'REJECTED')",
            name="ck_connection_status",
        ),
        Index("ix_connection_receiver_status", "receiver_id", "status"),
    )
