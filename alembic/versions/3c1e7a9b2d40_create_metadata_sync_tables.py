"""create metadata sync tables

Revision ID: 3c1e7a9b2d40
Revises:
Create Date: 2026-10-12 10:14:02.118342

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1e7a9b2d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "contributors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("steam_id", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("steam_id"),
    )
    op.create_table(
        "games",
        sa.Column("appid", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("name_updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("appid"),
    )
    op.create_table(
        "ttb_reports",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("contributor_id", sa.Integer(), nullable=False),
        sa.Column("appid", sa.BigInteger(), nullable=False),
        sa.Column("main_seconds", sa.Integer(), nullable=True),
        sa.Column("extra_seconds", sa.Integer(), nullable=True),
        sa.Column("completionist_seconds", sa.Integer(), nullable=True),
        sa.Column("reported_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["contributor_id"], ["contributors.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["appid"], ["games.appid"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("contributor_id", "appid", name="uq_ttb_reports_contributor_appid"),
    )
    op.create_index("ix_ttb_reports_appid", "ttb_reports", ["appid"])
    op.create_table(
        "game_ttb_stats",
        sa.Column("appid", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("avg_main_seconds", sa.Float(), nullable=True),
        sa.Column("avg_extra_seconds", sa.Float(), nullable=True),
        sa.Column("avg_completionist_seconds", sa.Float(), nullable=True),
        sa.Column("report_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["appid"], ["games.appid"]),
        sa.PrimaryKeyConstraint("appid"),
    )
    op.create_table(
        "library_entries",
        sa.Column("contributor_id", sa.Integer(), nullable=False),
        sa.Column("appid", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("my_main_seconds", sa.Integer(), nullable=True),
        sa.Column("my_extra_seconds", sa.Integer(), nullable=True),
        sa.Column("my_completionist_seconds", sa.Integer(), nullable=True),
        sa.Column("my_reported_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["contributor_id"], ["contributors.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["appid"], ["games.appid"]),
        sa.PrimaryKeyConstraint("contributor_id", "appid"),
    )
    op.alter_column("game_ttb_stats", "report_count", server_default=None)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("library_entries")
    op.drop_table("game_ttb_stats")
    op.drop_index("ix_ttb_reports_appid", table_name="ttb_reports")
    op.drop_table("ttb_reports")
    op.drop_table("games")
    op.drop_table("contributors")
