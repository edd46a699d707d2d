"""Connection request, resolution, listing, and removal endpoints."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import AuthenticatedUser, get_async_session, get_current_user
from models.connection import Connection
from schemas.connection import (
    ConnectionListResponse,
    ConnectionRequestCreate,
    ConnectionResponse,
    IncomingRequestListResponse,
    IncomingRequestResponse,
)
from schemas.envelope import ApiResponse
from services import connection_service
from services.exceptions import (
    ConnectionConflictError,
    NotAuthorizedError,
    NotFoundError,
    PeerNotFoundError,
)

router = APIRouter(prefix="/connections", tags=["connections"])


def _conflict(e: ConnectionConflictError) -> HTTPException:
    """All state conflicts (self, duplicate, already connected, not pending) are 409."""
    return HTTPException(
        status_code=409,
        detail={"message": str(e), "error_code": type(e).__name__.removesuffix("Error")},
    )


@router.post("/request", response_model=ApiResponse[ConnectionResponse], status_code=201)
async def send_request(
    data: ConnectionRequestCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ConnectionResponse]:
    """Send a connection request to another user."""
    try:
        connection = await connection_service.request_connection(
            db, current_user.id, data.receiver_id,
        )
    except PeerNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    except ConnectionConflictError as e:
        raise _conflict(e)
    return ApiResponse(
        message="Connection request sent",
        data=ConnectionResponse.model_validate(connection),
    )


@router.get("/requests", response_model=ApiResponse[IncomingRequestListResponse])
async def list_requests(
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ApiResponse[IncomingRequestListResponse]:
    """List pending requests sent to the current user."""
    requests = await connection_service.list_incoming(db, current_user.id)
    items = [IncomingRequestResponse.model_validate(r) for r in requests]
    return ApiResponse(data=IncomingRequestListResponse(requests=items, count=len(items)))


async def _resolve(
    action: str,
    connection_id: int,
    current_user: AuthenticatedUser,
    db: AsyncSession,
) -> Connection:
    resolve = (
        connection_service.accept_connection
        if action == "accept"
        else connection_service.reject_connection
    )
    try:
        return await resolve(db, connection_id, current_user.id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Connection request not found")
    except NotAuthorizedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ConnectionConflictError as e:
        raise _conflict(e)


@router.put("/{connection_id}/accept", response_model=ApiResponse[ConnectionResponse])
async def accept_request(
    connection_id: int,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ConnectionResponse]:
    """Accept a pending request. Only its receiver may accept."""
    connection = await _resolve("accept", connection_id, current_user, db)
    return ApiResponse(
        message="Connection accepted",
        data=ConnectionResponse.model_validate(connection),
    )


@router.put("/{connection_id}/reject", response_model=ApiResponse[ConnectionResponse])
async def reject_request(
    connection_id: int,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ConnectionResponse]:
    """Reject a pending request. Only its receiver may reject."""
    connection = await _resolve("reject", connection_id, current_user, db)
    return ApiResponse(
        message="Connection rejected",
        data=ConnectionResponse.model_validate(connection),
    )


@router.get("", response_model=ApiResponse[ConnectionListResponse])
async def list_connections(
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ApiResponse[ConnectionListResponse]:
    """List accepted connections as the other party plus the acceptance time."""
    connections = await connection_service.list_accepted(db, current_user.id)
    return ApiResponse(
        data=ConnectionListResponse(connections=connections, count=len(connections)),
    )


@router.delete("/{connection_id}", response_model=ApiResponse[None])
async def remove_connection(
    connection_id: int,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ApiResponse[None]:
    """Remove a connection or request. Either party may remove it."""
    try:
        await connection_service.remove_connection(db, connection_id, current_user.id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Connection not found")
    except NotAuthorizedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return ApiResponse(message="Connection removed")
