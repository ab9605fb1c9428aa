from gamemeta.db.base import Base
from sqlalchemy import BigInteger, Integer, Float, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime


class GameTtbStats(Base):
    __tablename__ = "game_ttb_stats"

    appid: Mapped[int] = mapped_column(BigInteger, ForeignKey("games.appid"), primary_key=True, autoincrement=False)
    avg_main_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    avg_extra_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    avg_completionist_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    report_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
