"""
Portbook Backend - Destination Route Handlers
===============================================

What:  The /api/destinations endpoints (destinations and their shipping lines).
How:   Every route requires a bearer token (router-level dependency), lets
       pydantic validate path ids and bodies, delegates to
       DestinationService and wraps the result in the success envelope.
Who:   Called by the quotation frontend that picks a POD and a carrier.

Route Inventory:
    GET    /api/destinations                                  list active
    GET    /api/destinations/{id}                             fetch one
    POST   /api/destinations                                  create (201)
    PUT    /api/destinations/{id}                             rename / replace lines
    DELETE /api/destinations/{id}                             soft delete
    POST   /api/destinations/{id}/shipping-lines              add one line
    POST   /api/destinations/{id}/shipping-lines/bulk         add many lines
    PUT    /api/destinations/{id}/shipping-lines/{lineId}     patch one line
    DELETE /api/destinations/{id}/shipping-lines/{lineId}     remove one line
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.destination import (
    DestinationCreate,
    DestinationEnvelope,
    DestinationListEnvelope,
    DestinationUpdate,
    ShippingLineCreate,
    ShippingLinePatch,
    ShippingLinesBulkCreate,
)
from app.services.destination_service import destination_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/destinations",
    tags=["Destinations"],
    dependencies=[Depends(get_current_user)],
    responses={
        400: {"description": "Validation error or name collision", "model": ErrorResponse},
        401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
)

NOT_FOUND = {404: {"description": "Destination or shipping line not found", "model": ErrorResponse}}


# ── Destinations ──────────────────────────────────────────────────────────


@router.get(
    "",
    response_model=DestinationListEnvelope,
    response_model_exclude_none=True,
    summary="List active destinations",
    description=(
        "Returns every destination that has not been soft-deleted, ordered by "
        "name. `shippingLine` keeps only destinations with an active line whose "
        "name contains the text (case-insensitive)."
    ),
)
async def list_destinations(
    shipping_line: Optional[str] = Query(
        default=None,
        alias="shippingLine",
        max_length=100,
        description="Filter by (part of) an active shipping line name",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> DestinationListEnvelope:
    destinations = await destination_service.list_destinations(db, shipping_line=shipping_line)
    return DestinationListEnvelope(count=len(destinations), data=destinations)


@router.get(
    "/{destination_id}",
    response_model=DestinationEnvelope,
    response_model_exclude_none=True,
    responses=NOT_FOUND,
    summary="Get a destination by ID",
    description="Returns the destination even when it has been soft-deleted.",
)
async def get_destination(
    destination_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> DestinationEnvelope:
    destination = await destination_service.get_destination(db, destination_id)
    return DestinationEnvelope(data=destination)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=DestinationEnvelope,
    response_model_exclude_none=True,
    summary="Create a destination",
    description="Creates a destination, optionally with its initial shipping lines.",
)
async def create_destination(
    payload: DestinationCreate,
    db: AsyncSession = Depends(get_db_session),
) -> DestinationEnvelope:
    destination = await destination_service.create_destination(db, payload)
    return DestinationEnvelope(
        message=(
            f"Destination created successfully with "
            f"{len(destination.shipping_lines)} shipping lines"
        ),
        data=destination,
    )


@router.put(
    "/{destination_id}",
    response_model=DestinationEnvelope,
    response_model_exclude_none=True,
    responses=NOT_FOUND,
    summary="Update a destination",
    description=(
        "Renames the destination and/or replaces its shipping lines. Fields left "
        "out of the body are not changed. Echo a line's `id` to keep it."
    ),
)
async def update_destination(
    destination_id: UUID,
    payload: DestinationUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> DestinationEnvelope:
    destination = await destination_service.update_destination(db, destination_id, payload)
    return DestinationEnvelope(message="Destination updated successfully", data=destination)


@router.delete(
    "/{destination_id}",
    response_model=MessageResponse,
    responses=NOT_FOUND,
    summary="Soft-delete a destination",
    description="Marks the destination inactive; it disappears from the listing.",
)
async def delete_destination(
    destination_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await destination_service.soft_delete_destination(db, destination_id)
    return MessageResponse(message="Destination deleted successfully")


# ── Shipping lines ────────────────────────────────────────────────────────


@router.post(
    "/{destination_id}/shipping-lines",
    response_model=DestinationEnvelope,
    response_model_exclude_none=True,
    responses=NOT_FOUND,
    summary="Add a shipping line",
)
async def add_shipping_line(
    destination_id: UUID,
    payload: ShippingLineCreate,
    db: AsyncSession = Depends(get_db_session),
) -> DestinationEnvelope:
    destination = await destination_service.add_shipping_line(db, destination_id, payload)
    return DestinationEnvelope(message="Shipping line added successfully", data=destination)


@router.post(
    "/{destination_id}/shipping-lines/bulk",
    response_model=DestinationEnvelope,
    response_model_exclude_none=True,
    responses=NOT_FOUND,
    summary="Add several shipping lines",
    description="All-or-nothing: one colliding name rejects the whole batch.",
)
async def add_shipping_lines(
    destination_id: UUID,
    payload: ShippingLinesBulkCreate,
    db: AsyncSession = Depends(get_db_session),
) -> DestinationEnvelope:
    destination = await destination_service.add_shipping_lines(db, destination_id, payload)
    return DestinationEnvelope(
        message=f"{len(payload.shipping_lines)} shipping lines added successfully",
        data=destination,
    )


@router.put(
    "/{destination_id}/shipping-lines/{line_id}",
    response_model=DestinationEnvelope,
    response_model_exclude_none=True,
    responses=NOT_FOUND,
    summary="Update a shipping line",
    description="Partial update: only the fields present in the body change.",
)
async def update_shipping_line(
    destination_id: UUID,
    line_id: UUID,
    payload: ShippingLinePatch,
    db: AsyncSession = Depends(get_db_session),
) -> DestinationEnvelope:
    destination = await destination_service.update_shipping_line(
        db, destination_id, line_id, payload
    )
    return DestinationEnvelope(message="Shipping line updated successfully", data=destination)


@router.delete(
    "/{destination_id}/shipping-lines/{line_id}",
    response_model=DestinationEnvelope,
    response_model_exclude_none=True,
    responses=NOT_FOUND,
    summary="Remove a shipping line",
    description="Idempotent: removing a line that is already gone succeeds.",
)
async def remove_shipping_line(
    destination_id: UUID,
    line_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> DestinationEnvelope:
    destination = await destination_service.remove_shipping_line(db, destination_id, line_id)
    return DestinationEnvelope(message="Shipping line deleted successfully", data=destination)
