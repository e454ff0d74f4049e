# oneword/scoring.py
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .db_pg import SessionLocal
from .difficulty import DifficultyResult, score_word
from .eligibility import ELIGIBLE_WORD
from .errors import WordNotFound
from .schema import DifficultyOut, RunSummary
from .stores import WordStore

log = logging.getLogger(__name__)

JOB = "difficulty"


def _skip_reason(eligibility: Optional[str], reason: Optional[str]) -> Optional[str]:
    if eligibility == ELIGIBLE_WORD:
        return None
    if eligibility is None:
        return "eligibility not classified"
    return f"{eligibility}: {reason}" if reason else eligibility


async def score_single(
    session: AsyncSession,
    word: str,
    settings: Optional[Settings] = None,
    persist: bool = True,
) -> DifficultyOut:
    """Score one stored word. Phrases and ineligible entries come back unscored with a reason."""
    settings = settings or Settings()
    store = WordStore(session)
    row = await store.get(word)
    if row is None:
        raise WordNotFound(word)

    skipped = _skip_reason(row.eligibility, row.eligibility_reason)
    if skipped:
        return DifficultyOut(word=row.word, skipped_reason=skipped)

    features = (await store.features([row]))[row.id]
    result = score_word(features, settings)
    if persist:
        await store.save_difficulty(row.id, result, settings.scoring_fingerprint())
        await session.commit()
    return DifficultyOut(
        word=row.word,
        score=result.score,
        level=result.level.value,
        frequency_measured=result.frequency_measured,
        persisted=persist,
        factors=result.components,
    )


async def _save_each(session_factory, results: Dict[int, DifficultyResult], fingerprint: str) -> int:
    failed = 0
    for word_id, result in results.items():
        async with session_factory() as session:
            try:
                await WordStore(session).save_difficulty(word_id, result, fingerprint)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                log.warning("could not save difficulty for word %d: %s", word_id, e)
                failed += 1
    return failed


async def run_scoring(
    session_factory: Callable[[], AsyncSession] = SessionLocal,
    settings: Optional[Settings] = None,
    limit: Optional[int] = None,
    rescore_all: bool = False,
) -> RunSummary:
    """
    Score every enriched eligible word that has no score, or one computed
    under different weights/thresholds (all of them with `rescore_all`).
    """
    settings = settings or Settings()
    fingerprint = settings.scoring_fingerprint()
    summary = RunSummary(job=JOB)
    after = 0

    while limit is None or summary.processed < limit:
        size = settings.batch_size if limit is None else min(settings.batch_size, limit - summary.processed)
        async with session_factory() as session:
            store = WordStore(session)
            batch = await store.scoring_batch(after, size, fingerprint, rescore_all)
            if not batch:
                break
            features = await store.features(batch)

        results: Dict[int, DifficultyResult] = {}
        unmeasured: List[str] = []
        for w in batch:
            results[w.id] = score_word(features[w.id], settings)
            if not results[w.id].frequency_measured:
                unmeasured.append(w.word)
        if unmeasured:
            log.info("%d words scored with the default frequency", len(unmeasured))

        async with session_factory() as session:
            try:
                store = WordStore(session)
                for word_id, result in results.items():
                    await store.save_difficulty(word_id, result, fingerprint)
                await session.commit()
                failed = 0
            except SQLAlchemyError as e:
                await session.rollback()
                log.warning("difficulty batch after id %d rolled back (%s), saving one by one", after, e)
                failed = -1
        if failed < 0:
            failed = await _save_each(session_factory, results, fingerprint)

        summary.processed += len(batch)
        summary.failed += failed
        summary.successful += len(batch) - failed
        after = batch[-1].id
        summary.last_processed_id = after
        log.info("scoring progress: %s", summary.line())

    log.info(summary.line())
    return summary
