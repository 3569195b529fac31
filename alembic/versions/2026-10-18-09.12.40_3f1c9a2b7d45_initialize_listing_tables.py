"""Initialize listing tables

Revision ID: 3f1c9a2b7d45
Revises:
Create Date: 2026-10-18 09:12:40.214873

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1c9a2b7d45"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "listings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("make", sa.String(), nullable=False),
        sa.Column("model", sa.String(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("location", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("engine", sa.String(), nullable=True),
        sa.Column("transmission", sa.String(), nullable=True),
        sa.Column("mileage", sa.Integer(), nullable=True),
        sa.Column("condition", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("modification_count", sa.Integer(), nullable=False),
        sa.Column("view_count", sa.Integer(), nullable=False),
        sa.Column("search_boost", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("listings", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_listings_created_at"), ["created_at"], unique=False)
        batch_op.create_index(batch_op.f("ix_listings_make"), ["make"], unique=False)
        batch_op.create_index(batch_op.f("ix_listings_model"), ["model"], unique=False)
        batch_op.create_index(batch_op.f("ix_listings_price"), ["price"], unique=False)
        batch_op.create_index(batch_op.f("ix_listings_status"), ["status"], unique=False)
        batch_op.create_index(batch_op.f("ix_listings_title"), ["title"], unique=False)
        batch_op.create_index(batch_op.f("ix_listings_year"), ["year"], unique=False)

    op.create_table(
        "listing_images",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=False),
        sa.Column("image_url", sa.String(), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["listing_id"],
            ["listings.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("listing_images", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_listing_images_created_at"), ["created_at"], unique=False)
        batch_op.create_index(batch_op.f("ix_listing_images_listing_id"), ["listing_id"], unique=False)

    op.create_table(
        "modifications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["listing_id"],
            ["listings.id"],
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("modifications", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_modifications_category"), ["category"], unique=False)
        batch_op.create_index(batch_op.f("ix_modifications_created_at"), ["created_at"], unique=False)
        batch_op.create_index(batch_op.f("ix_modifications_listing_id"), ["listing_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_modifications_name"), ["name"], unique=False)


def downgrade() -> None:
    with op.batch_alter_table("modifications", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_modifications_name"))
        batch_op.drop_index(batch_op.f("ix_modifications_listing_id"))
        batch_op.drop_index(batch_op.f("ix_modifications_created_at"))
        batch_op.drop_index(batch_op.f("ix_modifications_category"))

    op.drop_table("modifications")

    with op.batch_alter_table("listing_images", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_listing_images_listing_id"))
        batch_op.drop_index(batch_op.f("ix_listing_images_created_at"))

    op.drop_table("listing_images")

    with op.batch_alter_table("listings", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_listings_year"))
        batch_op.drop_index(batch_op.f("ix_listings_title"))
        batch_op.drop_index(batch_op.f("ix_listings_status"))
        batch_op.drop_index(batch_op.f("ix_listings_price"))
        batch_op.drop_index(batch_op.f("ix_listings_model"))
        batch_op.drop_index(batch_op.f("ix_listings_make"))
        batch_op.drop_index(batch_op.f("ix_listings_created_at"))

    op.drop_table("listings")
