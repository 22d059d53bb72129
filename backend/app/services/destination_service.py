"""
Portbook Backend - Destination Service (Aggregate Rules)
==========================================================

What:  Every read and mutation of the destination / shipping-line aggregate.
How:   Each operation loads one Destination (lines included), checks the
       aggregate's invariants, mutates the ORM objects and flushes. The
       request's session commits afterwards (see app.database).
Who:   Called by the /api/destinations route handlers and the seed script.

Invariants enforced here:
    - destination_name is unique on the exact string (database constraint;
      the IntegrityError is translated into ConflictError)
    - line names are unique within one destination, ignoring case
    - a batch of line names has no internal duplicates and no blank names
    - bulk additions are all-or-nothing
    - "delete" only flips is_active; nothing is physically removed

Validation and conflict checks all run before the aggregate is touched,
so a rejected request never leaves a partial change in the session.

Known race:
    Two concurrent additions of the same line name to one destination can
    both pass the duplicate check before either commits. The transaction
    keeps each write atomic; ordering between the two checks is not
    serialized.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    ConflictError,
    NotFoundError,
    PortbookError,
    StoreError,
    ValidationError,
)
from app.models.destination import (
    DESTINATION_NAME_UNIQUE,
    Destination,
    ShippingLine,
)
from app.schemas.destination import (
    DestinationCreate,
    DestinationResponse,
    DestinationUpdate,
    ShippingLineCreate,
    ShippingLinePatch,
    ShippingLineSpec,
    ShippingLinesBulkCreate,
)

logger = logging.getLogger(__name__)

DUPLICATE_DESTINATION_MESSAGE = "Destination with this name already exists"


def _is_destination_name_violation(exc: IntegrityError) -> bool:
    # PostgreSQL reports the constraint name, SQLite the column
    detail = str(exc.orig)
    return DESTINATION_NAME_UNIQUE in detail or "destinations.destination_name" in detail


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@contextmanager
def store_errors(operation: str, **context: object) -> Iterator[None]:
    """
    Translate database failures raised inside the block.

    Application exceptions pass through unchanged. A unique violation on the
    destination name becomes ConflictError; anything else from SQLAlchemy
    becomes StoreError with details kept server-side.
    """
    try:
        yield
    except PortbookError:
        raise
    except IntegrityError as e:
        if _is_destination_name_violation(e):
            logger.info("Rejected %s: destination name already taken %s", operation, context)
            raise ConflictError(
                message=DUPLICATE_DESTINATION_MESSAGE,
                context={"operation": operation, **context},
            ) from e
        logger.error("Integrity error during %s: %s", operation, str(e))
        raise StoreError(
            context={"operation": operation, "error_type": type(e).__name__, **context},
        ) from e
    except SQLAlchemyError as e:
        logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
        raise StoreError(
            context={"operation": operation, "error_type": type(e).__name__, **context},
        ) from e


class DestinationService:
    """
    Business logic for the destination aggregate.

    Stateless: the session is passed to every call, so one instance is
    shared by all requests.
    """

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def check_line_batch(
        specs: Iterable[ShippingLineCreate],
        field: str = "shippingLines",
    ) -> None:
        """
        Reject a batch with case-insensitive duplicates or blank names.

        Raises:
            ValidationError: on the first rule the batch breaks
        """
        names = [(spec.line_name or "").strip() for spec in specs]

        seen = set()
        duplicates: List[str] = []
        for name in names:
            key = name.lower()
            if key in seen and name not in duplicates:
                duplicates.append(name)
            seen.add(key)
        if duplicates:
            raise ValidationError(
                message="Duplicate shipping line names are not allowed",
                field=field,
                context={"names": duplicates},
            )

        if any(not name for name in names):
            raise ValidationError(
                message="All shipping lines must have a valid name",
                field=field,
            )

    @staticmethod
    def _new_line(spec: ShippingLineCreate) -> ShippingLine:
        return ShippingLine(
            line_name=spec.line_name.strip(),
            is_active=spec.resolved_is_active,
        )

    @staticmethod
    def _to_response(destination: Destination) -> DestinationResponse:
        return DestinationResponse.model_validate(destination)

    async def _load(self, db: AsyncSession, destination_id: UUID) -> Destination:
        result = await db.execute(
            select(Destination).where(Destination.id == destination_id)
        )
        destination = result.scalar_one_or_none()
        if destination is None:
            raise NotFoundError(
                resource="destination",
                resource_id=str(destination_id),
                message="Destination not found",
            )
        return destination

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_destinations(
        self,
        db: AsyncSession,
        shipping_line: Optional[str] = None,
    ) -> List[DestinationResponse]:
        """
        Active destinations ordered by name.

        `shipping_line` narrows the list to destinations with an active line
        whose name contains the text, ignoring case.
        """
        with store_errors("list destinations", shipping_line=shipping_line):
            query = (
                select(Destination)
                .where(Destination.is_active.is_(True))
                .order_by(Destination.destination_name.asc())
            )
            term = (shipping_line or "").strip().lower()
            if term:
                query = query.where(
                    Destination.shipping_lines.any(
                        and_(
                            func.lower(ShippingLine.line_name).like(
                                f"%{_escape_like(term)}%", escape="\\"
                            ),
                            ShippingLine.is_active.is_(True),
                        )
                    )
                )
            result = await db.execute(query)
            destinations = list(result.scalars().all())
            return [self._to_response(d) for d in destinations]

    async def get_destination(
        self, db: AsyncSession, destination_id: UUID
    ) -> DestinationResponse:
        """One destination by id, active or soft-deleted."""
        with store_errors("get destination", destination_id=str(destination_id)):
            destination = await self._load(db, destination_id)
            return self._to_response(destination)

    # ── Destination mutations ─────────────────────────────────────────────

    async def create_destination(
        self, db: AsyncSession, payload: DestinationCreate
    ) -> DestinationResponse:
        """
        Create a destination, optionally seeded with shipping lines.

        Raises:
            ValidationError: duplicate or blank line names in the payload
            ConflictError: destination_name already exists
            StoreError: unexpected database failure
        """
        self.check_line_batch(payload.shipping_lines)

        destination = Destination(
            destination_name=payload.destination_name.strip(),
            is_active=True,
            shipping_lines=[],
        )
        destination.replace_shipping_lines(
            [self._new_line(spec) for spec in payload.shipping_lines]
        )

        with store_errors("create destination", destination_name=destination.destination_name):
            db.add(destination)
            await db.flush()

        logger.info(
            "Destination %s created: '%s' with %d shipping lines",
            destination.id,
            destination.destination_name,
            len(destination.shipping_lines),
        )
        return self._to_response(destination)

    async def update_destination(
        self,
        db: AsyncSession,
        destination_id: UUID,
        payload: DestinationUpdate,
    ) -> DestinationResponse:
        """
        Rename a destination and/or replace its shipping lines.

        Only fields present in the request body are applied. A supplied
        `shippingLines` array replaces the list; echoed ids of this
        destination's lines are kept, all other entries get new ids.
        """
        supplied = payload.model_fields_set
        replace_lines = "shipping_lines" in supplied and payload.shipping_lines is not None
        if replace_lines:
            self.check_line_batch(payload.shipping_lines)

        with store_errors("update destination", destination_id=str(destination_id)):
            destination = await self._load(db, destination_id)

            if "destination_name" in supplied and payload.destination_name is not None:
                destination.destination_name = payload.destination_name.strip()

            if replace_lines:
                destination.replace_shipping_lines(
                    self._merge_lines(destination, payload.shipping_lines)
                )
                destination.touch()

            await db.flush()

        logger.info(
            "Destination %s updated (fields: %s)",
            destination.id,
            ", ".join(sorted(supplied)) or "none",
        )
        return self._to_response(destination)

    def _merge_lines(
        self,
        destination: Destination,
        specs: List[ShippingLineSpec],
    ) -> List[ShippingLine]:
        existing = {line.id: line for line in destination.shipping_lines}
        lines: List[ShippingLine] = []
        for spec in specs:
            line = existing.pop(spec.id, None) if spec.id is not None else None
            if line is None:
                lines.append(self._new_line(spec))
                continue
            line.line_name = spec.line_name.strip()
            line.is_active = spec.resolved_is_active
            lines.append(line)
        return lines

    async def soft_delete_destination(
        self, db: AsyncSession, destination_id: UUID
    ) -> None:
        """Flag a destination inactive. Its shipping lines are left as they are."""
        with store_errors("delete destination", destination_id=str(destination_id)):
            destination = await self._load(db, destination_id)
            destination.is_active = False
            await db.flush()

        logger.info("Destination %s soft-deleted", destination_id)

    # ── Shipping line mutations ───────────────────────────────────────────

    async def add_shipping_line(
        self,
        db: AsyncSession,
        destination_id: UUID,
        payload: ShippingLineCreate,
    ) -> DestinationResponse:
        """
        Append one line.

        Raises:
            NotFoundError: destination does not exist
            ConflictError: a line with the same name (any case) exists
        """
        with store_errors("add shipping line", destination_id=str(destination_id)):
            destination = await self._load(db, destination_id)

            if destination.find_line_by_name(payload.line_name) is not None:
                logger.info(
                    "Rejected duplicate shipping line '%s' on destination %s",
                    payload.line_name,
                    destination_id,
                )
                raise ConflictError(
                    message="Shipping line with this name already exists for this destination",
                    names=[payload.line_name.strip()],
                )

            destination.shipping_lines.append(self._new_line(payload))
            destination.touch()
            await db.flush()

        logger.info("Shipping line '%s' added to destination %s", payload.line_name, destination_id)
        return self._to_response(destination)

    async def add_shipping_lines(
        self,
        db: AsyncSession,
        destination_id: UUID,
        payload: ShippingLinesBulkCreate,
    ) -> DestinationResponse:
        """
        Append a batch of lines, all or nothing.

        The batch is checked on its own first, then against the existing
        lines; every colliding name is reported in one ConflictError.
        """
        self.check_line_batch(payload.shipping_lines)

        with store_errors("add shipping lines", destination_id=str(destination_id)):
            destination = await self._load(db, destination_id)

            existing = {line.line_name.lower() for line in destination.shipping_lines}
            collisions = [
                spec.line_name.strip()
                for spec in payload.shipping_lines
                if spec.line_name.strip().lower() in existing
            ]
            if collisions:
                logger.info(
                    "Rejected batch of %d shipping lines on destination %s: %s",
                    len(payload.shipping_lines),
                    destination_id,
                    collisions,
                )
                raise ConflictError(
                    message=f"Shipping lines already exist: {', '.join(collisions)}",
                    names=collisions,
                )

            for spec in payload.shipping_lines:
                destination.shipping_lines.append(self._new_line(spec))
            destination.touch()
            await db.flush()

        logger.info(
            "%d shipping lines added to destination %s",
            len(payload.shipping_lines),
            destination_id,
        )
        return self._to_response(destination)

    async def update_shipping_line(
        self,
        db: AsyncSession,
        destination_id: UUID,
        line_id: UUID,
        patch: ShippingLinePatch,
    ) -> DestinationResponse:
        """
        Merge the supplied fields into one line; omitted fields keep their values.

        A rename that matches a sibling line (ignoring case) is a ConflictError.
        """
        changes = patch.model_dump(exclude_unset=True)

        with store_errors(
            "update shipping line",
            destination_id=str(destination_id),
            line_id=str(line_id),
        ):
            destination = await self._load(db, destination_id)
            line = destination.find_line(line_id)
            if line is None:
                raise NotFoundError(
                    resource="shipping line",
                    resource_id=str(line_id),
                    message="Shipping line not found",
                )

            if "line_name" in changes:
                new_name = changes["line_name"].strip()
                if destination.find_line_by_name(new_name, exclude_id=line.id) is not None:
                    raise ConflictError(
                        message="Shipping line with this name already exists for this destination",
                        names=[new_name],
                    )
                line.line_name = new_name

            if "is_active" in changes:
                line.is_active = changes["is_active"]

            if changes:
                destination.touch()
                await db.flush()

        logger.info(
            "Shipping line %s on destination %s updated (fields: %s)",
            line_id,
            destination_id,
            ", ".join(sorted(changes)) or "none",
        )
        return self._to_response(destination)

    async def remove_shipping_line(
        self,
        db: AsyncSession,
        destination_id: UUID,
        line_id: UUID,
    ) -> DestinationResponse:
        """
        Remove one line. Removing a line that is not there is a no-op;
        only a missing destination is an error.
        """
        with store_errors(
            "remove shipping line",
            destination_id=str(destination_id),
            line_id=str(line_id),
        ):
            destination = await self._load(db, destination_id)
            line = destination.find_line(line_id)
            if line is None:
                logger.info(
                    "Shipping line %s not on destination %s; nothing to remove",
                    line_id,
                    destination_id,
                )
                return self._to_response(destination)

            destination.shipping_lines.remove(line)
            destination.touch()
            await db.flush()

        logger.info("Shipping line %s removed from destination %s", line_id, destination_id)
        return self._to_response(destination)


destination_service = DestinationService()
