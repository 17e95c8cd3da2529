"""Initial schema: parcels and ownership transfers.

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # -- Parcels --
    op.create_table(
        "parcels",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("location", sa.Text, nullable=False),
        sa.Column("size", sa.Float, nullable=False),
        sa.Column("owner", sa.String(128), nullable=False),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("size > 0", name="ck_parcels_size_positive"),
        sa.CheckConstraint("owner <> ''", name="ck_parcels_owner_not_empty"),
    )
    op.create_index("ix_parcels_owner", "parcels", ["owner"])

    # -- Ownership Transfers --
    op.create_table(
        "ownership_transfers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "parcel_id",
            sa.Integer,
            sa.ForeignKey("parcels.id"),
            nullable=False,
        ),
        sa.Column("from_owner", sa.String(128), nullable=True),
        sa.Column("to_owner", sa.String(128), nullable=False),
        sa.Column("transferred_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_ownership_transfers_parcel_id", "ownership_transfers", ["parcel_id"]
    )


def downgrade() -> None:
    op.drop_table("ownership_transfers")
    op.drop_table("parcels")
