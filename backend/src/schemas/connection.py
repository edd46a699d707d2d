"""Pydantic schemas for connection endpoints."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from models.connection import ConnectionStatus
from schemas.user import UserSummary


class ConnectionRequestCreate(BaseModel):
    """Schema for sending a connection request."""

    receiver_id: int = Field(gt=0)


class ConnectionResponse(BaseModel):
    """Schema for a single connection record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    sender_id: int
    receiver_id: int
    status: ConnectionStatus
    created_at: datetime
    updated_at: datetime


class IncomingRequestResponse(ConnectionResponse):
    """A pending request addressed to the current user, with the sender's summary."""

    sender: UserSummary


class IncomingRequestListResponse(BaseModel):
    """Schema for the incoming request list."""

    requests: list[IncomingRequestResponse]
    count: int


class ConnectedUserResponse(BaseModel):
    """
    An accepted connection seen from one side.

    Projects the record to the other party and the time the connection was
    accepted. Not a stored entity.
    """

    id: int
    connected_user: UserSummary
    connected_at: datetime


class ConnectionListResponse(BaseModel):
    """Schema for the accepted connection list."""

    connections: list[ConnectedUserResponse]
    count: int
