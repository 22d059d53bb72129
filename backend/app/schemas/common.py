"""
Portbook Backend - Shared API Schemas
=======================================

What:  The response envelope pieces every endpoint shares.
How:   All API models serialize with camelCase aliases
       (`destinationName`, `isActive`, ...) and also accept snake_case
       names when built from Python code.

Envelope:
    {"success": true,  "message": "...", "data": {...}}
    {"success": false, "error": "not_found", "message": "...", "requestId": "..."}
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldError(CamelModel):
    field: str = Field(description="Dotted path of the offending field, e.g. shippingLines.0.lineName")
    message: str = Field(description="What is wrong with the value")


class MessageResponse(CamelModel):
    """Success envelope without a payload (e.g. soft delete)."""
    success: bool = True
    message: str


class ErrorResponse(CamelModel):
    """
    Standardized error envelope for all API errors.

    Example:
        {
            "success": false,
            "error": "conflict",
            "message": "Shipping lines already exist: COSCO Shipping",
            "requestId": "a1b2c3d4"
        }
    """
    success: bool = False
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    errors: Optional[List[FieldError]] = Field(
        default=None,
        description="Per-field validation errors (validation_error only)",
    )
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    """Returned by GET /health for container and load balancer probes."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
