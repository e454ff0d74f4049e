# oneword/stores.py
"""
Repository layer over the words / synsets / relationships / daily_words tables.

Stores never commit; callers own the transaction. Upserts use
INSERT ... ON CONFLICT from the PostgreSQL dialect, or the SQLite one when
the session is bound to SQLite.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from .config import LEVELS
from .difficulty import DifficultyResult, SenseFeatures, WordFeatures
from .eligibility import ELIGIBLE_PHRASE, ELIGIBLE_WORD
from .models import DailyWord, JobCheckpoint, Relationship, Synset, Word, WordSynset
from .relationships import Relationship as RelationshipRecord
from .selector import Assignment, Candidate
from .wordnet import Synset as SynsetRecord

CHUNK = 500

# words.enrichment_status
ENRICHMENT_OK = "ok"
ENRICHMENT_NO_DATA = "no_data"
ENRICHMENT_FAILED = "failed"


def _insert(session: AsyncSession, model):
    if session.get_bind().dialect.name == "sqlite":
        return sqlite.insert(model)
    return postgresql.insert(model)


def _chunks(rows: Sequence, size: int = CHUNK) -> Iterator[Sequence]:
    for i in range(0, len(rows), size):
        yield rows[i:i + size]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SynsetStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert_many(self, synsets: Iterable[SynsetRecord]) -> int:
        rows = [
            {
                "id": s.id,
                "offset": s.offset,
                "pos": s.pos,
                "lex_filenum": s.lex_filenum,
                "domain": s.domain,
                "definition": s.definition,
                "examples": list(s.examples) or None,
            }
            for s in synsets
        ]
        for chunk in _chunks(rows):
            stmt = _insert(self.session, Synset).values(list(chunk))
            stmt = stmt.on_conflict_do_update(
                index_elements=[Synset.id],
                set_={
                    "lex_filenum": stmt.excluded.lex_filenum,
                    "domain": stmt.excluded.domain,
                    "definition": stmt.excluded.definition,
                    "examples": stmt.excluded.examples,
                },
            )
            await self.session.execute(stmt)
        return len(rows)

    async def all_ids(self) -> Set[str]:
        res = await self.session.execute(select(Synset.id))
        return set(res.scalars())


class WordStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert_many(self, rows: Sequence[dict]) -> int:
        """rows: word, pos, polysemy, eligibility, eligibility_reason"""
        for chunk in _chunks(list(rows)):
            stmt = _insert(self.session, Word).values(list(chunk))
            stmt = stmt.on_conflict_do_update(
                index_elements=[Word.word],
                set_={
                    "pos": stmt.excluded.pos,
                    "polysemy": stmt.excluded.polysemy,
                    "eligibility": stmt.excluded.eligibility,
                    "eligibility_reason": stmt.excluded.eligibility_reason,
                },
            )
            await self.session.execute(stmt)
        return len(rows)

    async def id_map(self, words: Sequence[str]) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for chunk in _chunks(list(words)):
            res = await self.session.execute(select(Word.word, Word.id).where(Word.word.in_(chunk)))
            out.update({w: i for w, i in res.all()})
        return out

    async def link_many(self, links: Sequence[dict]) -> int:
        """links: word_id, synset_id, sense_number, tag_count"""
        for chunk in _chunks(list(links)):
            stmt = _insert(self.session, WordSynset).values(list(chunk))
            stmt = stmt.on_conflict_do_update(
                index_elements=[WordSynset.word_id, WordSynset.synset_id],
                set_={"sense_number": stmt.excluded.sense_number, "tag_count": stmt.excluded.tag_count},
            )
            await self.session.execute(stmt)
        return len(links)

    async def get(self, word: str) -> Optional[Word]:
        res = await self.session.execute(select(Word).where(Word.word == word.strip().lower()))
        return res.scalar_one_or_none()

    async def pending_enrichment(self, after_id: int, limit: int) -> List[Word]:
        res = await self.session.execute(
            select(Word)
            .where(
                Word.id > after_id,
                Word.eligibility.in_((ELIGIBLE_WORD, ELIGIBLE_PHRASE)),
                Word.enriched_at.is_(None),
            )
            .order_by(Word.id)
            .limit(limit)
        )
        return list(res.scalars())

    async def save_enrichment(
        self,
        word_id: int,
        status: str,
        frequency: Optional[float] = None,
        frequency_signal: Optional[float] = None,
        syllables: Optional[int] = None,
    ) -> None:
        values = {"enrichment_status": status}
        # failed lookups stay pending; an aborted run rewinds its checkpoint over
        # the failing streak, other failures wait for a restarted run
        if status != ENRICHMENT_FAILED:
            values["enriched_at"] = _now()
        # keep earlier data if this lookup produced none
        if frequency is not None:
            values["frequency"] = frequency
            values["frequency_signal"] = frequency_signal
        if syllables is not None:
            values["syllable_count"] = syllables
        await self.session.execute(update(Word).where(Word.id == word_id).values(**values))

    async def scoring_batch(self, after_id: int, limit: int, fingerprint: str, rescore_all: bool = False) -> List[Word]:
        q = select(Word).where(
            Word.id > after_id,
            Word.eligibility == ELIGIBLE_WORD,
            Word.enrichment_status.is_not(None),
        )
        if not rescore_all:
            q = q.where(
                (Word.difficulty_fingerprint.is_(None)) | (Word.difficulty_fingerprint != fingerprint)
            )
        res = await self.session.execute(q.order_by(Word.id).limit(limit))
        return list(res.scalars())

    async def features(self, words: Sequence[Word]) -> Dict[int, WordFeatures]:
        senses: Dict[int, List[SenseFeatures]] = defaultdict(list)
        ids = [w.id for w in words]
        for chunk in _chunks(ids):
            res = await self.session.execute(
                select(WordSynset.word_id, Synset.definition, Synset.domain)
                .join(Synset, Synset.id == WordSynset.synset_id)
                .where(WordSynset.word_id.in_(chunk))
                .order_by(WordSynset.word_id, WordSynset.sense_number)
            )
            for word_id, definition, domain in res.all():
                senses[word_id].append(SenseFeatures(definition or "", domain))
        return {
            w.id: WordFeatures(
                word=w.word,
                pos=w.pos,
                frequency=w.frequency,
                syllable_count=w.syllable_count,
                polysemy_count=w.polysemy or len(senses[w.id]),
                senses=tuple(senses[w.id]),
            )
            for w in words
        }

    async def save_difficulty(self, word_id: int, result: DifficultyResult, fingerprint: str) -> None:
        await self.session.execute(
            update(Word)
            .where(Word.id == word_id)
            .values(
                difficulty_score=result.score,
                difficulty_level=result.level.value,
                difficulty_fingerprint=fingerprint,
            )
        )

    async def candidates(self, level: str) -> List[Candidate]:
        res = await self.session.execute(
            select(Word.id, Word.word, Word.pos, Word.difficulty_score)
            .where(Word.eligibility == ELIGIBLE_WORD, Word.difficulty_level == level)
            .order_by(Word.id)
        )
        return [Candidate(i, w, p, level, s) for i, w, p, s in res.all()]


class RelationshipStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert_many(self, relationships: Sequence[RelationshipRecord]) -> int:
        """Insert, ignoring (from, to, type) triples already stored. Returns rows written."""
        written = 0
        rows = [
            {"from_synset_id": r.from_synset_id, "to_synset_id": r.to_synset_id, "relationship_type": r.relationship_type}
            for r in relationships
        ]
        for chunk in _chunks(rows):
            stmt = _insert(self.session, Relationship).values(list(chunk)).on_conflict_do_nothing(
                index_elements=[Relationship.from_synset_id, Relationship.to_synset_id, Relationship.relationship_type]
            )
            res = await self.session.execute(stmt)
            written += res.rowcount if res.rowcount and res.rowcount > 0 else 0
        return written

    async def from_synset(self, synset_id: str) -> List[RelationshipRecord]:
        res = await self.session.execute(
            select(Relationship.from_synset_id, Relationship.to_synset_id, Relationship.relationship_type)
            .where(Relationship.from_synset_id == synset_id)
            .order_by(Relationship.id)
        )
        return [RelationshipRecord(*row) for row in res.all()]


def _assignment(row: DailyWord) -> Assignment:
    return Assignment(row.ymd, row.difficulty_level, row.word_id, row.word, row.pos, row.relaxed_constraint)


class AssignmentStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def for_date(self, ymd: str) -> List[Assignment]:
        res = await self.session.execute(select(DailyWord).where(DailyWord.ymd == ymd))
        rows = [_assignment(r) for r in res.scalars()]
        return sorted(rows, key=lambda a: LEVELS.index(a.level) if a.level in LEVELS else len(LEVELS))

    async def history(self, start: str, end: str) -> Dict[str, Set[int]]:
        """date -> word ids assigned on dates in [start, end)"""
        res = await self.session.execute(
            select(DailyWord.ymd, DailyWord.word_id).where(DailyWord.ymd >= start, DailyWord.ymd < end)
        )
        out: Dict[str, Set[int]] = defaultdict(set)
        for ymd, word_id in res.all():
            out[ymd].add(word_id)
        return dict(out)

    async def insert_missing(self, assignments: Sequence[Assignment]) -> None:
        """First writer wins per (date, level)."""
        if not assignments:
            return
        stmt = _insert(self.session, DailyWord).values([
            {
                "ymd": a.ymd,
                "difficulty_level": a.level,
                "word_id": a.word_id,
                "word": a.word,
                "pos": a.pos,
                "relaxed_constraint": a.relaxed_constraint,
            }
            for a in assignments
        ]).on_conflict_do_nothing(index_elements=[DailyWord.ymd, DailyWord.difficulty_level])
        await self.session.execute(stmt)

    async def replace_for_date(self, ymd: str, assignments: Sequence[Assignment]) -> None:
        await self.session.execute(delete(DailyWord).where(DailyWord.ymd == ymd))
        await self.insert_missing(assignments)


class CheckpointStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, job: str) -> JobCheckpoint:
        cp = await self.session.get(JobCheckpoint, job)
        if cp is None:
            cp = JobCheckpoint(job=job, last_processed_id=0, processed=0, successful=0, failed=0, skipped=0)
            self.session.add(cp)
        return cp

    async def advance(self, job: str, last_id: int, processed=0, successful=0, failed=0, skipped=0) -> JobCheckpoint:
        cp = await self.get(job)
        cp.last_processed_id = max(cp.last_processed_id or 0, last_id)
        cp.processed = (cp.processed or 0) + processed
        cp.successful = (cp.successful or 0) + successful
        cp.failed = (cp.failed or 0) + failed
        cp.skipped = (cp.skipped or 0) + skipped
        cp.updated_at = _now()
        return cp

    async def rewind(self, job: str, last_id: int) -> JobCheckpoint:
        """Move the checkpoint back so ids after `last_id` are visited again."""
        cp = await self.get(job)
        cp.last_processed_id = min(cp.last_processed_id or 0, last_id)
        cp.updated_at = _now()
        return cp

    async def reset(self, job: str) -> None:
        await self.session.execute(delete(JobCheckpoint).where(JobCheckpoint.job == job))
