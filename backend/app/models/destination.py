"""
Portbook Backend - Destination Aggregate Models
=================================================

What:  ORM models for the `destinations` and `shipping_lines` tables.
How:   A Destination owns an ordered list of ShippingLine rows through a
       `delete-orphan` relationship, so the pair behaves as one aggregate:
       lines are created, replaced and removed only through their parent.
Who:   Used by DestinationService, the seed script, and Alembic.

Table Design:
    destinations
        - UUID primary key
        - destination_name: unique on the exact stored string (case-sensitive)
        - is_active: soft-delete flag, indexed for the default listing
    shipping_lines
        - UUID primary key, scoped to its parent in the API
        - destination_id: FK with ON DELETE CASCADE
        - position: insertion order within the parent, maintained by
          `ordering_list`
        - line_name: indexed; uniqueness within the parent is
          case-insensitive and checked by the service layer
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


DESTINATION_NAME_UNIQUE = "uq_destinations_destination_name"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ShippingLine(Base):
    """
    A carrier entry (Maersk, MSC, COSCO ...) attached to one destination.

    Has no lifecycle of its own: it is created with, replaced in, or
    removed from its parent's `shipping_lines` collection.
    """

    __tablename__ = "shipping_lines"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    destination_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("destinations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Maintained by ordering_list on the parent relationship
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    line_name: Mapped[str] = mapped_column(String(100), nullable=False)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_shipping_lines_line_name", "line_name"),
    )

    def __repr__(self) -> str:
        return (
            f"<ShippingLine(id={self.id}, line_name='{self.line_name}', "
            f"is_active={self.is_active})>"
        )


class Destination(Base):
    """
    A port-of-discharge reference entry and its shipping lines.

    Lifecycle:
        1. Created active, optionally with an initial list of lines
        2. Renamed / lines replaced, added, patched or removed
        3. Soft-deleted: is_active = False (never physically removed by the API,
           no reactivation path)

    `shipping_lines` is loaded with `selectin` so a destination fetched by
    any query arrives with its lines; async sessions cannot lazy-load.
    """

    __tablename__ = "destinations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    destination_name: Mapped[str] = mapped_column(String(100), nullable=False)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    shipping_lines: Mapped[List[ShippingLine]] = relationship(
        order_by=ShippingLine.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("destination_name", name=DESTINATION_NAME_UNIQUE),
        Index("idx_destinations_is_active", "is_active"),
    )

    # ── Aggregate helpers ─────────────────────────────────────────────────

    @property
    def active_shipping_lines_count(self) -> int:
        return sum(1 for line in self.shipping_lines if line.is_active)

    def find_line(self, line_id: uuid.UUID) -> Optional[ShippingLine]:
        for line in self.shipping_lines:
            if line.id == line_id:
                return line
        return None

    def find_line_by_name(
        self,
        line_name: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> Optional[ShippingLine]:
        """Case-insensitive lookup among this destination's lines."""
        wanted = line_name.strip().lower()
        for line in self.shipping_lines:
            if line.id != exclude_id and line.line_name.lower() == wanted:
                return line
        return None

    def replace_shipping_lines(self, lines: List[ShippingLine]) -> None:
        """Swap in a new ordered list; lines left out are deleted on flush."""
        self.shipping_lines = lines
        self.shipping_lines.reorder()

    def touch(self) -> None:
        """Bump updated_at when only the owned lines changed."""
        self.updated_at = utc_now()

    def __repr__(self) -> str:
        return (
            f"<Destination(id={self.id}, destination_name='{self.destination_name}', "
            f"is_active={self.is_active})>"
        )
