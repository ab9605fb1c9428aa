from gamemeta.db.base import Base
from sqlalchemy import BigInteger, String, Integer, DateTime, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime


class GameTag(Base):
    __tablename__ = "game_tags"

    __table_args__ = (
        Index("ix_game_tags_tag_name", "tag_name"),
    )

    appid: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    tag_name: Mapped[str] = mapped_column(String, primary_key=True)
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
