"""price ledger tables

Revision ID: 0001_price_ledger
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_price_ledger"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_projects")),
    )

    op.create_table(
        "urls",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_urls")),
        sa.UniqueConstraint("url", name=op.f("uq_urls_url")),
    )

    op.create_table(
        "items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "project_id",
            sa.Uuid(),
            sa.ForeignKey("projects.id", name=op.f("fk_items_project_id_projects"), ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("manufacturer", sa.String(120), nullable=True),
        sa.Column("model", sa.String(150), nullable=False),
        sa.Column(
            "source_url_id",
            sa.Uuid(),
            sa.ForeignKey("urls.id", name=op.f("fk_items_source_url_id_urls"), ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("status", sa.String(20), server_default="active", nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_items")),
    )
    op.create_index(op.f("ix_items_project_id"), "items", ["project_id"])
    op.create_index(op.f("ix_items_source_url_id"), "items", ["source_url_id"])

    op.create_table(
        "item_prices",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "item_id",
            sa.Uuid(),
            sa.ForeignKey("items.id", name=op.f("fk_item_prices_item_id_items"), ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("condition", sa.String(10), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("source_type", sa.String(10), server_default="manual", nullable=False),
        sa.Column(
            "source_url_id",
            sa.Uuid(),
            sa.ForeignKey("urls.id", name=op.f("fk_item_prices_source_url_id_urls"), ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("source_note", sa.Text(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("observed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("is_primary", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_item_prices")),
        sa.CheckConstraint("amount >= 0", name=op.f("ck_item_prices_amount_non_negative")),
        sa.CheckConstraint("length(currency) = 3", name=op.f("ck_item_prices_currency_three_letters")),
        sa.CheckConstraint("condition IN ('new', 'used')", name=op.f("ck_item_prices_condition_valid")),
        sa.CheckConstraint("source_type IN ('url', 'manual')", name=op.f("ck_item_prices_source_type_valid")),
        sa.CheckConstraint(
            "source_type = 'url' OR source_url_id IS NULL",
            name=op.f("ck_item_prices_manual_source_without_url"),
        ),
    )
    op.create_index(op.f("ix_item_prices_item_id"), "item_prices", ["item_id"])
    op.create_index(op.f("ix_item_prices_source_url_id"), "item_prices", ["source_url_id"])
    op.create_index("ix_item_prices_item_id_observed_at", "item_prices", ["item_id", "observed_at"])
    # At most one primary price per (item, condition)
    op.create_index(
        "uq_item_prices_primary_per_condition",
        "item_prices",
        ["item_id", "condition"],
        unique=True,
        postgresql_where=sa.text("is_primary"),
    )


def downgrade() -> None:
    op.drop_index("uq_item_prices_primary_per_condition", table_name="item_prices")
    op.drop_index("ix_item_prices_item_id_observed_at", table_name="item_prices")
    op.drop_index(op.f("ix_item_prices_source_url_id"), table_name="item_prices")
    op.drop_index(op.f("ix_item_prices_item_id"), table_name="item_prices")
    op.drop_table("item_prices")
    op.drop_index(op.f("ix_items_source_url_id"), table_name="items")
    op.drop_index(op.f("ix_items_project_id"), table_name="items")
    op.drop_table("items")
    op.drop_table("urls")
    op.drop_table("projects")
