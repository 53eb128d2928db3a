"""Create users, products and categories tables

Revision ID: 001
Revises: None
Create Date: 2024-05-02 00:00:00.000000+00:00

What:  Initial schema for accounts and the catalog.
How:   Generic SQLAlchemy types (Uuid, JSON) so the same revision runs on
       PostgreSQL and SQLite.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(150), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        # bcrypt hash only
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'user'")),
        sa.Column("profile_picture", sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    # Unique: duplicate registrations that slip past the service check fail here
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        # Category *title*, intentionally not a foreign key
        sa.Column("category", sa.String(255), nullable=False),
        sa.Column("type", sa.String(100), nullable=False, server_default=sa.text("''")),
        sa.Column("sizes", sa.JSON(), nullable=False),
        sa.Column("size", sa.String(50), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("stock", sa.String(100), nullable=False, server_default=sa.text("''")),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("prevprice", sa.Float(), nullable=True),
        sa.Column("qty", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("discount", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("totalprice", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("rating", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_products_category", "products", ["category"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("products", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_categories_title", "categories", ["title"])


def downgrade() -> None:
    """
    WARNING: destructive. All accounts and catalog data are lost.
    """
    op.drop_index("ix_categories_title", table_name="categories")
    op.drop_table("categories")
    op.drop_index("ix_products_category", table_name="products")
    op.drop_table("products")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
