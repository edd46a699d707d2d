"""Response envelope shared by every endpoint."""
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """
    Envelope wrapping every response body: {success, message, data?}.

    Error responses are rendered in the same shape by the exception handlers
    in api/main.py, with data omitted or carrying validation details.
    """

    success: bool = True
    message: str = ""
    data: DataT | None = None


def error_body(message: str, data: Any = None) -> dict[str, Any]:
    """Build the envelope for an error response."""
    body: dict[str, Any] = {"success": False, "message": message}
    if data is not None:
        body["data"] = data
    return body
