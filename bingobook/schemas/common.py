"""
BingoBook Backend — Shared Schema Pieces
==========================================

What:  The camelCase base model used by every request/response schema, plus
       the error and health response models.
How:   Field names are snake_case in Python; `to_camel` aliases make the
       JSON contract `firstName`, `entryId`, `timesheetRow`, ...
       `populate_by_name` lets services construct models with snake_case names.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


def blank_to_none(value: Any) -> Any:
    """Form posts send empty strings for untouched inputs; treat them as null."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "entry with ID '999' was not found",
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
