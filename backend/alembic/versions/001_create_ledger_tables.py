"""Create users, images and transactions tables

Revision ID: 001
Revises: None
Create Date: 2025-04-02 00:00:00.000000+00:00

What:  Initial schema: user balances plus the two append-only history tables.
How:   Plain columns only. Images and transactions reference users by id
       without foreign keys; the tables are used as document collections.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(128), nullable=False, comment="Client-app user id"),
        sa.Column("credits", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "attributes",
            sa.JSON(),
            nullable=False,
            server_default=sa.text("'{}'"),
            comment="Free-form profile fields (name, email, ...)",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "images",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "enhanced_prompt",
            sa.Text(),
            nullable=False,
            server_default=sa.text("''"),
            comment="Prompt actually sent to the image model",
        ),
        sa.Column("image_description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("original_image_url", sa.Text(), nullable=True),
        sa.Column("style", sa.String(64), nullable=False),
        sa.Column("detail_level", sa.Integer(), nullable=False, server_default=sa.text("50")),
        sa.Column("image_url", sa.Text(), nullable=False, comment="Provider-hosted result"),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    # Per-user history, newest first
    op.create_index(
        "idx_images_user_created_at",
        "images",
        ["user_id", sa.text("created_at DESC")],
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False, comment="Signed credit delta"),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("order_id", sa.String(128), nullable=True),
        sa.Column("payment_id", sa.String(128), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("image_id", sa.String(36), nullable=True),
        sa.Column("prompt", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_transactions_user_created_at",
        "transactions",
        ["user_id", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_transactions_user_created_at", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("idx_images_user_created_at", table_name="images")
    op.drop_table("images")
    op.drop_table("users")
