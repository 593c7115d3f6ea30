"""Common API response schemas."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """JSON envelope shared by every KYC scorer endpoint."""

    data: T


class HealthStatus(BaseModel):
    """Liveness payload."""

    status: str = "ok"
