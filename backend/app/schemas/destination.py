"""
Portbook Backend - Destination Request/Response Schemas
=========================================================

What:  Pydantic models defining the API contract for destinations and
       their shipping lines.
How:   Request models trim and length-check names and reject non-boolean
       `isActive` values before any service code runs; FastAPI turns the
       failures into a 400 `validation_error` envelope.
       Response models are built from ORM objects (`from_attributes`).

Partial updates:
    DestinationUpdate and ShippingLinePatch declare every field optional.
    Whether a field was supplied is read from `model_fields_set`, so an
    omitted field is left untouched while an explicit `null` is rejected.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import (
    AliasChoices,
    ConfigDict,
    Field,
    StrictBool,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from app.schemas.common import CamelModel


NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100


def clean_name(value: Any, *, required_message: str, length_message: str) -> Any:
    """
    Trim a name and enforce the 2-100 character rule.

    Non-string values are returned untouched so pydantic reports its own
    type error for them.
    """
    if value is None:
        raise ValueError(required_message)
    if not isinstance(value, str):
        return value
    value = value.strip()
    if not value:
        raise ValueError(required_message)
    if not NAME_MIN_LENGTH <= len(value) <= NAME_MAX_LENGTH:
        raise ValueError(length_message)
    return value


def _destination_name(value: Any) -> Any:
    return clean_name(
        value,
        required_message="POD destination name is required",
        length_message="Destination name must be between 2 and 100 characters",
    )


def _line_name(value: Any) -> Any:
    return clean_name(
        value,
        required_message="Shipping line name is required",
        length_message="Shipping line name must be between 2 and 100 characters",
    )


def _is_active(value: Any) -> Any:
    if not isinstance(value, bool):
        raise ValueError("isActive must be a boolean value")
    return value


def as_utc(value: Any) -> Any:
    """Naive timestamps (SQLite drops the offset) are stored as UTC."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _line_array(value: Any) -> Any:
    if not isinstance(value, list):
        raise ValueError("Shipping lines must be an array")
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ShippingLineCreate(CamelModel):
    """Body of POST /destinations/{id}/shipping-lines and one element of a batch."""
    line_name: str = Field(description="Carrier name, 2-100 characters after trimming")
    is_active: Optional[StrictBool] = Field(
        default=None,
        description="Defaults to true when omitted",
    )

    @field_validator("line_name", mode="before")
    @classmethod
    def validate_line_name(cls, v: Any) -> Any:
        return _line_name(v)

    @field_validator("is_active", mode="before")
    @classmethod
    def validate_is_active(cls, v: Any) -> Any:
        return _is_active(v)

    @property
    def resolved_is_active(self) -> bool:
        return True if self.is_active is None else self.is_active


class ShippingLineSpec(ShippingLineCreate):
    """
    One element of a full-replacement `shippingLines` array.

    `id` (or `_id`) echoes an existing line of the same destination to keep
    its identifier; anything else gets a new one.
    """
    id: Optional[uuid.UUID] = Field(
        default=None,
        validation_alias=AliasChoices("id", "_id"),
        description="Identifier of an existing line to keep",
    )


class DestinationCreate(CamelModel):
    """Body of POST /destinations."""
    destination_name: str = Field(description="Unique destination name, 2-100 characters")
    shipping_lines: List[ShippingLineSpec] = Field(
        default_factory=list,
        description="Optional initial shipping lines",
    )

    @field_validator("destination_name", mode="before")
    @classmethod
    def validate_destination_name(cls, v: Any) -> Any:
        return _destination_name(v)

    @field_validator("shipping_lines", mode="before")
    @classmethod
    def validate_shipping_lines(cls, v: Any) -> Any:
        return _line_array(v)


class DestinationUpdate(CamelModel):
    """
    Body of PUT /destinations/{id}.

    Both fields are optional. A supplied `shippingLines` array replaces the
    current list wholesale.
    """
    destination_name: Optional[str] = None
    shipping_lines: Optional[List[ShippingLineSpec]] = None

    @field_validator("destination_name", mode="before")
    @classmethod
    def validate_destination_name(cls, v: Any) -> Any:
        return _destination_name(v)

    @field_validator("shipping_lines", mode="before")
    @classmethod
    def validate_shipping_lines(cls, v: Any) -> Any:
        return _line_array(v)


class ShippingLinesBulkCreate(CamelModel):
    """Body of POST /destinations/{id}/shipping-lines/bulk."""
    shipping_lines: List[ShippingLineCreate]

    @field_validator("shipping_lines", mode="before")
    @classmethod
    def validate_shipping_lines(cls, v: Any) -> Any:
        if not isinstance(v, list) or not v:
            raise ValueError("shippingLines must be a non-empty array")
        return v


class ShippingLinePatch(CamelModel):
    """Body of PUT /destinations/{id}/shipping-lines/{lineId}; merge semantics."""
    line_name: Optional[str] = None
    is_active: Optional[StrictBool] = None

    @field_validator("line_name", mode="before")
    @classmethod
    def validate_line_name(cls, v: Any) -> Any:
        return _line_name(v)

    @field_validator("is_active", mode="before")
    @classmethod
    def validate_is_active(cls, v: Any) -> Any:
        return _is_active(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ShippingLineResponse(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: uuid.UUID
    line_name: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def ensure_utc(cls, v: Any) -> Any:
        return as_utc(v)


class DestinationResponse(CamelModel):
    """A destination with its lines in insertion order."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: uuid.UUID
    destination_name: str
    shipping_lines: List[ShippingLineResponse]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def ensure_utc(cls, v: Any) -> Any:
        return as_utc(v)

    @computed_field(alias="activeShippingLinesCount")
    @property
    def active_shipping_lines_count(self) -> int:
        return sum(1 for line in self.shipping_lines if line.is_active)


class DestinationEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    data: DestinationResponse


class DestinationListEnvelope(CamelModel):
    success: bool = True
    count: int
    data: List[DestinationResponse]
