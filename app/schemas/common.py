"""
LevelUp AI - API Response Envelope.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Envelope every generation endpoint answers with.

    Example:
        {"success": true, "data": {...}, "message": "Workout plan generated"}
    """

    success: bool
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: T, message: Optional[str] = None) -> "ApiResponse[T]":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str, message: Optional[str] = None) -> "ApiResponse[T]":
        return cls(success=False, error=error, message=message)
