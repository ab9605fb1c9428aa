from gamemeta.db.base import Base
from sqlalchemy import Integer, String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime

class Contributor(Base):
    __tablename__ = "contributors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    steam_id: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    reports: Mapped[list["TtbReport"]] = relationship(
        back_populates="contributor",
        cascade="all, delete-orphan",
    )
    library: Mapped[list["LibraryEntry"]] = relationship(
        back_populates="contributor",
        cascade="all, delete-orphan",
    )
