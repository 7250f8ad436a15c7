"""Uniform response envelope shared by every endpoint"""

from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorResource(BaseModel):
    code: str
    message: str


class ApiResource(BaseModel, Generic[T]):
    """
    Envelope: ``{success, message, status, data, timestamp}``.

    ``errors`` (field -> messages) and ``error`` ({code, message}) are only
    present on failure; ``None`` fields are dropped when rendered.
    """
    success: bool
    message: str
    status: str
    data: Optional[T] = None
    errors: Optional[dict[str, list[str]]] = None
    error: Optional[ErrorResource] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def ok(cls, data: Any = None, message: str = "SUCCESS", status_code: int = HTTPStatus.OK):
        return cls(success=True, message=message, status=HTTPStatus(status_code).name, data=data)

    @classmethod
    def fail(cls, code: str, message: str, status_code: int,
             errors: Optional[dict[str, list[str]]] = None):
        return cls(
            success=False,
            message=message,
            status=HTTPStatus(status_code).name,
            errors=errors,
            error=ErrorResource(code=code, message=message),
        )

    def render(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
