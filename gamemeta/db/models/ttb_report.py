from gamemeta.db.base import Base
from sqlalchemy import Integer, BigInteger, DateTime, ForeignKey, UniqueConstraint, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime

class TtbReport(Base):
    __tablename__ = "ttb_reports"

    __table_args__ = (
        UniqueConstraint("contributor_id", "appid", name="uq_ttb_reports_contributor_appid"),
        Index("ix_ttb_reports_appid", "appid"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    contributor_id: Mapped[int] = mapped_column(
        ForeignKey("contributors.id", ondelete="CASCADE"), nullable=False
    )
    appid: Mapped[int] = mapped_column(BigInteger, ForeignKey("games.appid"), nullable=False)
    main_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    extra_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    completionist_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    reported_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    contributor: Mapped["Contributor"] = relationship(back_populates="reports")
