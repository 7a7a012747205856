from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ResultResponse(BaseModel):
    """Generic response model with success status and message."""

    success: bool
    message: str | None = None


class DataResult(ResultResponse, Generic[T]):
    """Generic result that extends ResultResponse with a data field."""

    data: T
