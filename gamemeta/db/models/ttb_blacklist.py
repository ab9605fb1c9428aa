from gamemeta.db.base import Base
from sqlalchemy import BigInteger, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime


class TtbBlacklistEntry(Base):
    __tablename__ = "ttb_blacklist"

    appid: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    game_name: Mapped[str] = mapped_column(String, nullable=False)
    reason: Mapped[str | None] = mapped_column(String, nullable=True)
    added_by_contributor_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("contributors.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
