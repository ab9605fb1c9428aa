from gamemeta.db.base import Base
from sqlalchemy import BigInteger, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime


class LibraryEntry(Base):
    __tablename__ = "library_entries"

    contributor_id: Mapped[int] = mapped_column(
        ForeignKey("contributors.id", ondelete="CASCADE"), primary_key=True
    )
    appid: Mapped[int] = mapped_column(BigInteger, ForeignKey("games.appid"), primary_key=True, autoincrement=False)
    # mirror of this contributor's live ttb report, all None when there is none
    my_main_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    my_extra_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    my_completionist_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    my_reported_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    contributor: Mapped["Contributor"] = relationship(back_populates="library")
