"""Create-or-update of extracted statistics under the (dependency, period) key."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from judstats.models.statistic import Statistic
from judstats.services import statistic_store
from judstats.sheets.errors import RecordValidationError
from judstats.sheets.normalizer import (
    infer_dependency_type,
    normalize_dependency_name,
    normalize_period,
    period_to_date,
)
from judstats.sheets.parser import ParsedStatistic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileOutcome:
    inserted: bool
    statistic_id: int


async def reconcile(db: AsyncSession, parsed: ParsedStatistic) -> ReconcileOutcome:
    """Insert or update the statistic for (dependency, period).

    Creates the dependency on first sight of its name. Flushes but does not
    commit: the caller decides the unit of work. Running this twice with the
    same input leaves exactly one row.

    Raises:
        RecordValidationError: empty dependency name or invalid period.
    """
    name = normalize_dependency_name(parsed.dependency_name or "")
    if not name:
        raise RecordValidationError("Empty dependency name")
    period = normalize_period(parsed.period)
    if period is None:
        raise RecordValidationError(
            f"Invalid period {parsed.period!r} for {name}"
        )

    dependency = await statistic_store.find_dependency_by_name(db, name)
    if dependency is None:
        dependency = await statistic_store.create_dependency(
            db, name, infer_dependency_type(name)
        )
        logger.info("Created dependency %s (%s)", name, dependency.type_)

    breakdown = parsed.breakdown_dict()
    extra = parsed.metadata.to_dict()
    statistic_date = parsed.statistic_date or period_to_date(period)

    statistic = await statistic_store.find_statistic(db, dependency.id, period)
    if statistic is not None:
        statistic.source_id = parsed.source_id
        statistic.statistic_date = statistic_date
        statistic.existentes = parsed.count_existentes
        statistic.recibidos = parsed.count_recibidos
        statistic.reingresados = parsed.count_reingresados
        statistic.category_breakdown = breakdown
        statistic.extra = extra
        await statistic_store.upsert_statistic(db, statistic)
        logger.debug("Updated statistic %s %s", name, period)
        return ReconcileOutcome(inserted=False, statistic_id=statistic.id)

    statistic = Statistic(
        source_id=parsed.source_id,
        dependency_id=dependency.id,
        period=period,
        statistic_date=statistic_date,
        existentes=parsed.count_existentes,
        recibidos=parsed.count_recibidos,
        reingresados=parsed.count_reingresados,
        category_breakdown=breakdown,
        extra=extra,
    )
    await statistic_store.upsert_statistic(db, statistic)
    logger.debug("Inserted statistic %s %s", name, period)
    return ReconcileOutcome(inserted=True, statistic_id=statistic.id)
