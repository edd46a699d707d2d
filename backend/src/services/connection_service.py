"""
Service layer for the connection state machine.

    request ──> PENDING ──accept (receiver)──> ACCEPTED
                       └─reject (receiver)──> REJECTED

ACCEPTED and REJECTED are terminal for a record. Either party may delete a
record in any state, which removes it entirely. A REJECTED record does not
block a new request between the same pair; the new request creates a fresh
PENDING record and the rejected one is kept as history.
"""
import logging

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.base import utcnow
from models.connection import Connection, ConnectionStatus
from schemas.connection import ConnectedUserResponse
from schemas.user import UserSummary
from services import user_service
from services.exceptions import (
    AlreadyConnectedError,
    DuplicatePendingError,
    InvalidStateError,
    NotAuthorizedError,
    NotFoundError,
    PeerNotFoundError,
    SelfConnectionError,
)

logger = logging.getLogger(__name__)


def pair_key(user_a: int, user_b: int) -> str:
    """
    Canonical key for an unordered pair of users.

    A->B and B->A produce the same key, so the unique constraint on
    Connection.active_pair covers both directions with one insert.
    """
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"


async def get_connection(db: AsyncSession, connection_id: int) -> Connection | None:
    """Get a connection by id, regardless of who is asking."""
    return await db.get(Connection, connection_id)


async def get_active_connection(
    db: AsyncSession,
    user_a: int,
    user_b: int,
) -> Connection | None:
    """Get the PENDING or ACCEPTED record for the pair, in either direction."""
    result = await db.execute(
        select(Connection).where(Connection.active_pair == pair_key(user_a, user_b)),
    )
    return result.scalar_one_or_none()


async def request_connection(
    db: AsyncSession,
    sender_id: int,
    receiver_id: int,
) -> Connection:
    """
    Create a PENDING request from sender to receiver.

    Deduplication is a single conditional insert on the canonical pair key
    rather than a read followed by a write, so two simultaneous requests in
    opposite directions cannot both succeed. The existing record is only
    read after the insert is refused, to report which conflict occurred.

    Raises:
        SelfConnectionError: If sender and receiver are the same user.
        PeerNotFoundError: If the receiver does not exist.
        DuplicatePendingError: If a pending request exists in either direction.
        AlreadyConnectedError: If the pair is already connected.
    """
    if sender_id == receiver_id:
        raise SelfConnectionError

    if not await user_service.user_exists(db, receiver_id):
        raise PeerNotFoundError(receiver_id)

    # A refused insert whose conflicting record is gone by the time it is
    # re-read (resolved or removed concurrently) is retried once.
    for attempt in (1, 2):
        connection = Connection(
            sender_id=sender_id,
            receiver_id=receiver_id,
            status=ConnectionStatus.PENDING,
            active_pair=pair_key(sender_id, receiver_id),
        )
        try:
            async with db.begin_nested():
                db.add(connection)
                await db.flush()
        except IntegrityError as e:
            existing = await get_active_connection(db, sender_id, receiver_id)
            if existing is not None:
                if existing.status == ConnectionStatus.ACCEPTED:
                    raise AlreadyConnectedError(existing.id) from e
                raise DuplicatePendingError(existing.id) from e
            # Receiver deleted after the existence check: the foreign key refused it
            if not await user_service.user_exists(db, receiver_id):
                raise PeerNotFoundError(receiver_id) from e
            if attempt == 2:
                raise
            logger.info(
                "connection_request_retry",
                extra={"sender_id": sender_id, "receiver_id": receiver_id},
            )
            continue
        break

    await db.refresh(connection)
    logger.info(
        "connection_requested",
        extra={"connection_id": connection.id, "sender_id": sender_id, "receiver_id": receiver_id},
    )
    return connection


async def _resolve(
    db: AsyncSession,
    connection_id: int,
    acting_user_id: int,
    new_status: ConnectionStatus,
) -> Connection:
    """
    Move a PENDING record to a terminal status on behalf of its receiver.

    The transition is a conditional UPDATE guarded by status = PENDING, so of
    two concurrent resolutions exactly one matches a row; the other sees a
    rowcount of zero and gets InvalidStateError.
    """
    connection = await get_connection(db, connection_id)
    if connection is None:
        raise NotFoundError(connection_id)

    verb = "accept" if new_status == ConnectionStatus.ACCEPTED else "reject"
    if connection.receiver_id != acting_user_id:
        raise NotAuthorizedError(f"You can only {verb} requests sent to you")

    if connection.status != ConnectionStatus.PENDING:
        raise InvalidStateError

    values: dict = {"status": new_status, "updated_at": utcnow()}
    if new_status == ConnectionStatus.REJECTED:
        # Frees the pair for a future request
        values["active_pair"] = None

    result = await db.execute(
        update(Connection)
        .where(
            Connection.id == connection_id,
            Connection.status == ConnectionStatus.PENDING,
        )
        .values(**values),
    )
    if result.rowcount == 0:
        raise InvalidStateError

    await db.refresh(connection)
    logger.info(
        "connection_resolved",
        extra={"connection_id": connection_id, "status": str(new_status)},
    )
    return connection


async def accept_connection(
    db: AsyncSession,
    connection_id: int,
    acting_user_id: int,
) -> Connection:
    """
    Accept a pending request. Only the receiver may accept.

    Raises:
        NotFoundError: If the connection does not exist.
        NotAuthorizedError: If the acting user is not the receiver.
        InvalidStateError: If the connection is not PENDING.
    """
    return await _resolve(db, connection_id, acting_user_id, ConnectionStatus.ACCEPTED)


async def reject_connection(
    db: AsyncSession,
    connection_id: int,
    acting_user_id: int,
) -> Connection:
    """
    Reject a pending request. Only the receiver may reject.

    Raises:
        NotFoundError: If the connection does not exist.
        NotAuthorizedError: If the acting user is not the receiver.
        InvalidStateError: If the connection is not PENDING.
    """
    return await _resolve(db, connection_id, acting_user_id, ConnectionStatus.REJECTED)


async def list_incoming(db: AsyncSession, user_id: int) -> list[Connection]:
    """PENDING requests addressed to user_id, newest first, with senders loaded."""
    result = await db.execute(
        select(Connection)
        .options(selectinload(Connection.sender))
        .where(
            Connection.receiver_id == user_id,
            Connection.status == ConnectionStatus.PENDING,
        )
        .order_by(Connection.created_at.desc(), Connection.id.desc()),
    )
    return list(result.scalars().all())


async def list_accepted(db: AsyncSession, user_id: int) -> list[ConnectedUserResponse]:
    """
    ACCEPTED connections touching user_id, most recently accepted first.

    Each record is projected to the other party plus the acceptance time.
    """
    result = await db.execute(
        select(Connection)
        .options(selectinload(Connection.sender), selectinload(Connection.receiver))
        .where(
            Connection.status == ConnectionStatus.ACCEPTED,
            or_(Connection.sender_id == user_id, Connection.receiver_id == user_id),
        )
        .order_by(Connection.updated_at.desc(), Connection.id.desc()),
    )
    items = []
    for connection in result.scalars().all():
        other = connection.receiver if connection.sender_id == user_id else connection.sender
        items.append(
            ConnectedUserResponse(
                id=connection.id,
                connected_user=UserSummary.model_validate(other),
                connected_at=connection.updated_at,
            ),
        )
    return items


async def remove_connection(
    db: AsyncSession,
    connection_id: int,
    acting_user_id: int,
) -> None:
    """
    Delete a connection in any state. Either party may remove it.

    Raises:
        NotFoundError: If the connection does not exist.
        NotAuthorizedError: If the acting user is neither sender nor receiver.
    """
    connection = await get_connection(db, connection_id)
    if connection is None:
        raise NotFoundError(connection_id)
    if acting_user_id not in (connection.sender_id, connection.receiver_id):
        raise NotAuthorizedError("You can only remove your own connections")

    await db.delete(connection)
    await db.flush()
    logger.info(
        "connection_removed",
        extra={"connection_id": connection_id, "user_id": acting_user_id},
    )
