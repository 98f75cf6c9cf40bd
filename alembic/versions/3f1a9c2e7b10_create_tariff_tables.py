"""create_tariff_tables

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1a9c2e7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Apply migration - create tariff_request, warehouse_tariff and spreadsheet tables."""
    # Create tariff_request table
    op.create_table(
        "tariff_request",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("request_date", sa.Date(), nullable=False),
        sa.Column("next_boundary_date", sa.Date(), nullable=True),
        sa.Column("max_boundary_date", sa.Date(), nullable=True),
        # Timestamps (from TimestampMixin)
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_tariff_request_request_date"), "tariff_request", ["request_date"], unique=True
    )

    # Create warehouse_tariff table
    op.create_table(
        "warehouse_tariff",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("request_id", sa.Integer(), nullable=False),
        sa.Column("warehouse_name", sa.String(length=255), nullable=False),
        # Box tariffs; NULL means the provider sent no usable value
        sa.Column("coefficient", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("delivery_base", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("delivery_per_liter", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("storage_base", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("storage_per_liter", sa.Numeric(precision=10, scale=2), nullable=True),
        # Constraints
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["request_id"], ["tariff_request.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "request_id", "warehouse_name", name="uq_warehouse_tariff_request_name"
        ),
    )
    op.create_index(
        op.f("ix_warehouse_tariff_request_id"), "warehouse_tariff", ["request_id"], unique=False
    )

    # Create spreadsheet table
    op.create_table(
        "spreadsheet",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("spreadsheet_id", sa.String(length=128), nullable=False),
        # Timestamps (from TimestampMixin)
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_spreadsheet_spreadsheet_id"), "spreadsheet", ["spreadsheet_id"], unique=True
    )


def downgrade() -> None:
    """Revert migration - drop spreadsheet, warehouse_tariff and tariff_request tables."""
    op.drop_index(op.f("ix_spreadsheet_spreadsheet_id"), table_name="spreadsheet")
    op.drop_table("spreadsheet")

    op.drop_index(op.f("ix_warehouse_tariff_request_id"), table_name="warehouse_tariff")
    op.drop_table("warehouse_tariff")

    op.drop_index(op.f("ix_tariff_request_request_date"), table_name="tariff_request")
    op.drop_table("tariff_request")
