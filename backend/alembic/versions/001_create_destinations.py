"""Create destinations and shipping_lines tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates the destination aggregate: `destinations` and its owned
       `shipping_lines` rows.
How:   UUID primary keys, TIMESTAMP WITH TIME ZONE audit columns, a unique
       constraint on destination_name and ON DELETE CASCADE from lines to
       their destination.

Rollback: downgrade() drops both tables (all reference data is lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "destinations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "destination_name",
            sa.String(100),
            nullable=False,
            comment="Port of discharge name; unique on the exact string",
        ),
        sa.Column(
            "is_active",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("true"),
            comment="Soft-delete flag; false means deleted",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("destination_name", name="uq_destinations_destination_name"),
    )
    # The default listing filters on is_active
    op.create_index("idx_destinations_is_active", "destinations", ["is_active"])

    op.create_table(
        "shipping_lines",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("destination_id", sa.Uuid(), nullable=False),
        sa.Column(
            "position",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Order of the line within its destination",
        ),
        sa.Column(
            "line_name",
            sa.String(100),
            nullable=False,
            comment="Carrier name; unique per destination ignoring case (service-enforced)",
        ),
        sa.Column(
            "is_active",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("true"),
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["destination_id"],
            ["destinations.id"],
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_shipping_lines_destination_id", "shipping_lines", ["destination_id"]
    )
    # Supports the ?shippingLine= filter on the listing
    op.create_index("idx_shipping_lines_line_name", "shipping_lines", ["line_name"])


def downgrade() -> None:
    op.drop_index("idx_shipping_lines_line_name", table_name="shipping_lines")
    op.drop_index("ix_shipping_lines_destination_id", table_name="shipping_lines")
    op.drop_table("shipping_lines")
    op.drop_index("idx_destinations_is_active", table_name="destinations")
    op.drop_table("destinations")
