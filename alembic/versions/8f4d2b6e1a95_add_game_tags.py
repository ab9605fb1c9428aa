"""add game tags

Revision ID: 8f4d2b6e1a95
Revises: 3c1e7a9b2d40
Create Date: 2026-10-13 18:40:51.502117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8f4d2b6e1a95"
down_revision: Union[str, Sequence[str], None] = "3c1e7a9b2d40"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "game_tags",
        sa.Column("appid", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("tag_name", sa.String(), nullable=False),
        sa.Column("vote_count", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("appid", "tag_name"),
    )
    op.create_index("ix_game_tags_tag_name", "game_tags", ["tag_name"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_game_tags_tag_name", table_name="game_tags")
    op.drop_table("game_tags")
