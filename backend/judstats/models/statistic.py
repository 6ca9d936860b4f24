from datetime import date, datetime, timezone

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from judstats.models.base import Base


class Statistic(Base):
    """Monthly case-load figures of one dependency.

    (dependency_id, period) is unique: re-running a sync updates the row
    in place instead of adding a new one.
    """

    __tablename__ = "statistics"
    __table_args__ = (
        UniqueConstraint("dependency_id", "period", name="uq_statistics_dependency_period"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    dependency_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("dependencies.id"), nullable=False
    )
    period: Mapped[str] = mapped_column(String(6), nullable=False, index=True)
    statistic_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    existentes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    recibidos: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reingresados: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # {category: {"asignados": int, "reingresados": int}}
    category_breakdown: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    # "metadata" is reserved on declarative classes
    extra: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
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
    dependency = relationship("Dependency", back_populates="statistics")

    @property
    def year(self) -> int:
        return int(self.period[:4])

    @property
    def month(self) -> int:
        return int(self.period[4:6])

    def category_total(self, kind: str) -> int:
        """Sum "asignados" or "reingresados" across all categories."""
        return sum(int(c.get(kind, 0)) for c in (self.category_breakdown or {}).values())
