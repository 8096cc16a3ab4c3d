"""
Error data model for the gateway.

Pure data: rendering into the JSON envelope happens in
``hospital_gateway.error_handling.fastapi``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from hospital_gateway.enums import ErrorCode


class ErrorDetail(BaseModel):
    """The canonical description of a failed request."""

    model_config = ConfigDict(frozen=True)

    error_code: ErrorCode
    status_code: int
    error: str
    message: str
    timestamp: datetime
    operation: str
    service_name: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
