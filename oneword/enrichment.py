# oneword/enrichment.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .datamuse_client import DatamuseClient, WordMetrics
from .db_pg import SessionLocal
from .errors import ApiAuthError, BatchAborted, ExternalApiError, RetryExhausted
from .frequency import commonness
from .schema import RunSummary
from .stores import (
    ENRICHMENT_FAILED, ENRICHMENT_NO_DATA, ENRICHMENT_OK, CheckpointStore, WordStore,
)

log = logging.getLogger(__name__)

JOB = "enrichment"


def _status(metrics: Optional[WordMetrics]) -> str:
    if metrics is None:
        return ENRICHMENT_FAILED
    if not metrics.found or metrics.frequency is None:
        return ENRICHMENT_NO_DATA
    return ENRICHMENT_OK


async def _save(
    session_factory: Callable[[], AsyncSession],
    word_id: int,
    metrics: Optional[WordMetrics],
    settings: Settings,
) -> bool:
    frequency = metrics.frequency if metrics else None
    signal = commonness(frequency, settings.max_expected_frequency) if frequency is not None else None
    async with session_factory() as session:
        try:
            await WordStore(session).save_enrichment(
                word_id,
                _status(metrics),
                frequency=frequency,
                frequency_signal=signal,
                syllables=metrics.syllables if metrics else None,
            )
            await session.commit()
            return True
        except SQLAlchemyError as e:
            await session.rollback()
            log.warning("could not save enrichment for word %d: %s", word_id, e)
            return False


async def _checkpoint(
    session_factory, last_id: int, before: RunSummary, now: RunSummary, rewind: bool = False
) -> None:
    async with session_factory() as session:
        store = CheckpointStore(session)
        await store.advance(
            JOB,
            last_id,
            processed=now.processed - before.processed,
            successful=now.successful - before.successful,
            failed=now.failed - before.failed,
            skipped=now.skipped - before.skipped,
        )
        if rewind:
            await store.rewind(JOB, last_id)
        await session.commit()


async def run_enrichment(
    session_factory: Callable[[], AsyncSession] = SessionLocal,
    client: Optional[DatamuseClient] = None,
    settings: Optional[Settings] = None,
    limit: Optional[int] = None,
    restart: bool = False,
) -> RunSummary:
    """
    Fetch frequency and syllable data for words that have none yet.

    Words are visited in ascending id order, resuming after the last
    checkpointed id. A failed lookup is counted and the run moves on; an auth
    failure, or `max_consecutive_failures` failures in a row, raise
    BatchAborted carrying the summary so far. The checkpoint is then left
    before the rejected word, or before the failing streak, so the next run
    looks those words up again.
    """
    settings = settings or Settings()
    own_client = client is None
    client = client or DatamuseClient.from_settings(settings)
    summary = RunSummary(job=JOB)

    try:
        async with session_factory() as session:
            store = CheckpointStore(session)
            if restart:
                await store.reset(JOB)
            after = (await store.get(JOB)).last_processed_id or 0
            await session.commit()
        if after:
            log.info("resuming enrichment after word id %d", after)

        consecutive = 0
        streak_from = after
        while limit is None or summary.processed < limit:
            size = settings.batch_size if limit is None else min(settings.batch_size, limit - summary.processed)
            async with session_factory() as session:
                batch = await WordStore(session).pending_enrichment(after, size)
            if not batch:
                break

            before = summary.model_copy()
            for word in batch:
                summary.processed += 1
                try:
                    metrics = await client.lookup(word.word)
                except ApiAuthError as e:
                    summary.failed += 1
                    summary.aborted = True
                    await _checkpoint(session_factory, after, before, summary)
                    log.error("frequency API rejected credentials: %s", e)
                    raise BatchAborted(f"enrichment aborted at word {word.id}: {e}", summary) from e
                except (ExternalApiError, RetryExhausted) as e:
                    log.warning("lookup failed for %r (id %d): %s", word.word, word.id, e)
                    metrics = None
                    if not consecutive:
                        streak_from = after
                    consecutive += 1
                else:
                    consecutive = 0

                saved = await _save(session_factory, word.id, metrics, settings)
                if metrics is None or not saved:
                    summary.failed += 1
                elif _status(metrics) == ENRICHMENT_NO_DATA:
                    summary.skipped += 1
                else:
                    summary.successful += 1
                after = word.id
                summary.last_processed_id = after

                if consecutive >= settings.max_consecutive_failures:
                    summary.aborted = True
                    await _checkpoint(session_factory, streak_from, before, summary, rewind=True)
                    log.error("next run resumes after word id %d", streak_from)
                    raise BatchAborted(
                        f"enrichment aborted after {consecutive} consecutive failures", summary
                    )

            await _checkpoint(session_factory, after, before, summary)
            log.info("enrichment progress: %s (last id %d)", summary.line(), after)
    finally:
        if own_client:
            await client.aclose()

    log.info(summary.line())
    return summary
