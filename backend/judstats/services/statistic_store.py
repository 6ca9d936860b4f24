"""Store operations the reconciliation engine relies on."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from judstats.models.dependency import Dependency
from judstats.models.statistic import Statistic


async def find_dependency_by_name(db: AsyncSession, name: str) -> Dependency | None:
    """Look up a dependency by its normalized name."""
    result = await db.execute(select(Dependency).where(Dependency.name == name))
    return result.scalar_one_or_none()


async def create_dependency(db: AsyncSession, name: str, type_: str) -> Dependency:
    dependency = Dependency(name=name, type_=type_, active=True)
    db.add(dependency)
    await db.flush()
    return dependency


async def find_statistic(db: AsyncSession, dependency_id: int, period: str) -> Statistic | None:
    result = await db.execute(
        select(Statistic).where(
            Statistic.dependency_id == dependency_id,
            Statistic.period == period,
        )
    )
    return result.scalar_one_or_none()


async def upsert_statistic(db: AsyncSession, statistic: Statistic) -> None:
    """Persist a new or modified statistic (flushed, not committed)."""
    db.add(statistic)
    await db.flush()


async def count_statistics_for_source(db: AsyncSession, source_id: str) -> int:
    result = await db.execute(
        select(func.count(Statistic.id)).where(Statistic.source_id == source_id)
    )
    return int(result.scalar_one())
