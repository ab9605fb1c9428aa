"""add ttb blacklist

Revision ID: b7a0c3e5f218
Revises: 8f4d2b6e1a95
Create Date: 2026-10-15 09:02:37.880461

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "b7a0c3e5f218"
down_revision: Union[str, Sequence[str], None] = "8f4d2b6e1a95"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "ttb_blacklist",
        sa.Column("appid", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("game_name", sa.String(), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("added_by_contributor_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["added_by_contributor_id"], ["contributors.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("appid"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("ttb_blacklist")
