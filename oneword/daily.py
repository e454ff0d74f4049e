# oneword/daily.py
"""
Daily word selection against the database.

Re-selecting a date that already has words returns them untouched unless
`force` is set, in which case that date's rows are replaced in one
transaction by words other than the ones being replaced, where the pool allows.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import LEVELS, Settings
from .schema import RunSummary
from .selector import Assignment, Candidate, DailyWordSelector, date_range, parse_ymd, shift
from .stores import AssignmentStore, WordStore

log = logging.getLogger(__name__)

JOB = "select"


@dataclass
class DaySelection:
    ymd: str
    assignments: List[Assignment] = field(default_factory=list)
    existing: bool = False


async def _selector(session: AsyncSession, start: str, days: int, settings: Settings) -> DailyWordSelector:
    words = WordStore(session)
    pools: Dict[str, List[Candidate]] = {}
    for level in LEVELS:
        if settings.per_level_counts.get(level, 0):
            pools[level] = await words.candidates(level)
    # lookback on both sides of the range, plus whatever the range already holds
    history = await AssignmentStore(session).history(
        shift(start, -settings.lookback_days), shift(start, days + settings.lookback_days)
    )
    return DailyWordSelector(
        pools,
        history=history,
        lookback_days=settings.lookback_days,
        pos_target_distribution=settings.pos_target_distribution,
    )


async def select_for_range(
    session: AsyncSession,
    start: str,
    days: int,
    settings: Optional[Settings] = None,
    force: bool = False,
) -> Tuple[List[DaySelection], RunSummary]:
    settings = settings or Settings()
    parse_ymd(start)
    if days < 1:
        raise ValueError("days must be >= 1")

    summary = RunSummary(job=JOB)
    selector = await _selector(session, start, days, settings)
    store = AssignmentStore(session)
    out: List[DaySelection] = []

    for ymd in date_range(start, days):
        summary.processed += 1
        existing = await store.for_date(ymd)
        if existing and not force:
            summary.skipped += 1
            out.append(DaySelection(ymd, existing, existing=True))
            continue

        # a forced re-selection should not hand back the words it replaces
        replaced = [a.word_id for a in existing] if force else []
        picks = selector.select_for_date(ymd, settings.per_level_counts, exclude=replaced)
        if not picks:
            log.warning("no candidates for any level on %s", ymd)
            selector.record(ymd, [a.word_id for a in existing])
            summary.skipped += 1
            out.append(DaySelection(ymd, existing, existing=bool(existing)))
            continue

        try:
            if force:
                await store.replace_for_date(ymd, picks)
            else:
                await store.insert_missing(picks)
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            log.warning("could not save daily words for %s: %s", ymd, e)
            selector.forget(ymd)
            if existing:
                selector.record(ymd, [a.word_id for a in existing])
            summary.failed += 1
            out.append(DaySelection(ymd, existing, existing=bool(existing)))
            continue

        # a concurrent run may have claimed some levels first
        stored = await store.for_date(ymd)
        selector.record(ymd, [a.word_id for a in stored])
        relaxed = sum(1 for a in stored if a.relaxed_constraint)
        summary.relaxed += relaxed
        summary.successful += 1
        out.append(DaySelection(ymd, stored))
        log.info("%s: %s%s", ymd, ", ".join(f"{a.level}={a.word}" for a in stored),
                 f" ({relaxed} relaxed)" if relaxed else "")

    log.info(summary.line())
    return out, summary


async def select_for_date(
    session: AsyncSession,
    ymd: str,
    settings: Optional[Settings] = None,
    force: bool = False,
) -> DaySelection:
    days, _ = await select_for_range(session, ymd, 1, settings, force)
    return days[0]
