# mypy: ignore-errors
"""
Migration Alembic initiale: utilisateurs, marques, clients et smartphones.
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=180), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("roles", sa.JSON(), nullable=False),
    )
    op.create_table(
        "brand",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
    )
    op.create_table(
        "customer",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=125), nullable=False),
        sa.Column("first_name", sa.String(length=80), nullable=False),
        sa.Column("last_name", sa.String(length=80), nullable=False),
        sa.Column("phone_number", sa.String(length=20), nullable=True),
        sa.Column("creation_date", sa.Date(), nullable=False),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.UniqueConstraint("owner_id", "email", name="uq_customer_owner_email"),
    )
    op.create_index("ix_customer_owner_id", "customer", ["owner_id"])
    op.create_table(
        "smartphone",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=80), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("screen_size", sa.Numeric(10, 1), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("brand_id", sa.Integer(), sa.ForeignKey("brand.id"), nullable=True),
    )
    op.create_index("ix_smartphone_brand_id", "smartphone", ["brand_id"])


def downgrade() -> None:
    op.drop_index("ix_smartphone_brand_id", table_name="smartphone")
    op.drop_table("smartphone")
    op.drop_index("ix_customer_owner_id", table_name="customer")
    op.drop_table("customer")
    op.drop_table("brand")
    op.drop_table("user")
