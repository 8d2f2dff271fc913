"""create_platform_modules_table

Revision ID: 4f2a9c1e7b3d
Revises:
Create Date: 2026-10-16 10:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "4f2a9c1e7b3d"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Global module catalog (not tenant scoped)
    op.create_table(
        "platform_modules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("module_type", sa.String(length=20), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("icon", sa.String(length=100), nullable=True),
        sa.Column("marketing_description", sa.Text(), nullable=True),
        sa.Column("features", sa.JSON(), nullable=False),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("pricing", sa.JSON(), nullable=False),
        sa.Column("dependencies", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_deprecated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deprecation_notice", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_platform_modules_code"), "platform_modules", ["code"], unique=True
    )
    op.create_index(
        op.f("ix_platform_modules_module_type"), "platform_modules", ["module_type"]
    )
    op.create_index(op.f("ix_platform_modules_category"), "platform_modules", ["category"])
    op.create_index(op.f("ix_platform_modules_is_active"), "platform_modules", ["is_active"])


def downgrade() -> None:
    op.drop_index(op.f("ix_platform_modules_is_active"), table_name="platform_modules")
    op.drop_index(op.f("ix_platform_modules_category"), table_name="platform_modules")
    op.drop_index(op.f("ix_platform_modules_module_type"), table_name="platform_modules")
    op.drop_index(op.f("ix_platform_modules_code"), table_name="platform_modules")
    op.drop_table("platform_modules")
