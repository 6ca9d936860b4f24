from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from judstats.models.base import Base


class Dependency(Base):
    """A judicial entity (court, chamber, office) statistics belong to."""

    __tablename__ = "dependencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Always stored normalized (trimmed, collapsed, uppercase)
    name: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    type_: Mapped[str | None] = mapped_column("type", String(200), nullable=True)
    sheet_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    statistics = relationship("Statistic", back_populates="dependency", lazy="selectin")
