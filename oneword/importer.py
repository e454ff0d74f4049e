# oneword/importer.py
"""
Load WordNet dictionary files into the database.

Two passes: synsets, words and word/synset links first, then relationships,
so that every pointer can be checked against the full set of known synsets.
"""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .db_pg import SessionLocal
from .eligibility import classify
from .relationships import Relationship, extract_relationships
from .schema import ImportSummary
from .stores import RelationshipStore, SynsetStore, WordStore
from .wordnet import (
    DATA_FILES, ParsedLine, SenseEntry, Synset, is_comment_line, iter_data_file, iter_sense_file,
)

log = logging.getLogger(__name__)

IMPORT_BATCH = 1000
SENSE_INDEX = "index.sense"

# satellites are adjectives as far as selection is concerned
_WORD_POS = {"n": "noun", "v": "verb", "a": "adjective", "s": "adjective", "r": "adverb"}


@dataclass
class _Occurrence:
    synset_id: str
    pos: str
    order: int      # position in file order across all data files
    lemma: str      # as written, before lowercasing


# ───────── Parsing ─────────
def read_data_files(dict_dir: Path, summary: ImportSummary) -> List[ParsedLine]:
    parsed: List[ParsedLine] = []
    for name in DATA_FILES.values():
        path = Path(dict_dir) / name
        if not path.exists():
            log.warning("missing %s, skipping", path)
            continue
        for lineno, line, result in iter_data_file(path):
            summary.lines += 1
            if result is None:
                if not is_comment_line(line):
                    summary.skipped += 1
                    log.warning("%s:%d unparseable line skipped", name, lineno)
                continue
            if result.truncated:
                summary.truncated += 1
                log.warning("%s:%d truncated line (%s), kept what was read", name, lineno, result.synset.id)
            parsed.append(result)
        log.info("parsed %s", path)
    return parsed


def read_sense_index(dict_dir: Path) -> Dict[Tuple[str, str], SenseEntry]:
    path = Path(dict_dir) / SENSE_INDEX
    if not path.exists():
        log.info("no %s, sense numbers follow file order", path)
        return {}
    return {(e.word, e.synset_id): e for e in iter_sense_file(path)}


def build_words(
    parsed: Sequence[ParsedLine],
    senses: Dict[Tuple[str, str], SenseEntry],
) -> Tuple[List[dict], Dict[str, List[dict]]]:
    """
    Word rows plus, per word, its synset links numbered 1..k.

    Links are ordered by index.sense sense number where known and by file
    order otherwise; unknown senses sort after known ones.
    """
    occurrences: Dict[str, List[_Occurrence]] = defaultdict(list)
    order = 0
    for p in parsed:
        for w in p.synset.words:
            key = w.lemma.lower()
            if any(o.synset_id == p.synset.id for o in occurrences[key]):
                continue
            occurrences[key].append(_Occurrence(p.synset.id, p.synset.pos, order, w.lemma))
            order += 1

    rows: List[dict] = []
    links: Dict[str, List[dict]] = {}
    for word, occ in occurrences.items():
        def rank(o: _Occurrence):
            entry = senses.get((word, o.synset_id))
            return (0, entry.sense_number, o.order) if entry else (1, 0, o.order)

        occ = sorted(occ, key=rank)
        first = occ[0]
        eligibility = classify(first.lemma)
        rows.append({
            "word": word,
            "pos": _WORD_POS.get(first.pos),
            "polysemy": len(occ),
            "eligibility": eligibility.status,
            "eligibility_reason": eligibility.reason,
        })
        links[word] = [
            {
                "synset_id": o.synset_id,
                "sense_number": n,
                "tag_count": senses[(word, o.synset_id)].tag_count if (word, o.synset_id) in senses else 0,
            }
            for n, o in enumerate(occ, start=1)
        ]
    return rows, links


# ───────── Persisting ─────────
async def _write_batch(
    session_factory: Callable[[], AsyncSession],
    label: str,
    items: Sequence,
    write: Callable[[AsyncSession, Sequence], Awaitable[object]],
) -> Optional[object]:
    """One transaction per batch. Returns write()'s result, or None when the batch was rolled back."""
    async with session_factory() as session:
        try:
            result = await write(session, items)
            await session.commit()
            return result
        except SQLAlchemyError as e:
            await session.rollback()
            log.warning("%s batch of %d rolled back: %s", label, len(items), e)
            return None


def _batches(items: Sequence, size: int = IMPORT_BATCH):
    for i in range(0, len(items), size):
        yield items[i:i + size]


async def import_wordnet(
    session_factory: Callable[[], AsyncSession] = SessionLocal,
    dict_dir: Path = Path("dict"),
) -> ImportSummary:
    summary = ImportSummary()
    dict_dir = Path(dict_dir)

    parsed = read_data_files(dict_dir, summary)
    synsets: Dict[str, Synset] = {}
    for p in parsed:
        synsets[p.synset.id] = p.synset
    summary.processed = len(parsed)

    # synsets
    failed_ids: Set[str] = set()
    synset_list = list(synsets.values())
    for batch in _batches(synset_list):
        ok = await _write_batch(session_factory, "synset", batch, lambda s, b: SynsetStore(s).upsert_many(b))
        if ok is None:
            summary.failed += len(batch)
            failed_ids.update(s.id for s in batch)
        else:
            summary.synsets += len(batch)
    log.info("synsets: %d written, %d failed", summary.synsets, len(failed_ids))

    # words
    rows, links = build_words(parsed, read_sense_index(dict_dir))
    for batch in _batches(rows):
        ok = await _write_batch(session_factory, "word", batch, lambda s, b: WordStore(s).upsert_many(b))
        if ok is None:
            summary.failed += len(batch)
        else:
            summary.words += len(batch)
    log.info("words: %d written", summary.words)

    # links, resolved against the stored word ids
    words = list(links)
    for batch in _batches(words):
        async def write_links(session: AsyncSession, chunk: Sequence[str]) -> int:
            store = WordStore(session)
            ids = await store.id_map(chunk)
            link_rows = [
                dict(link, word_id=ids[w])
                for w in chunk if w in ids
                for link in links[w] if link["synset_id"] not in failed_ids
            ]
            return await store.link_many(link_rows)

        written = await _write_batch(session_factory, "link", batch, write_links)
        if written is None:
            summary.failed += len(batch)
        else:
            summary.links += written
    log.info("links: %d written", summary.links)

    # relationships, against everything parsed now or stored by earlier imports
    async with session_factory() as session:
        valid = set(synsets) | await SynsetStore(session).all_ids()
    valid -= failed_ids

    seen: Set[Tuple[str, str, str]] = set()
    drops: Counter = Counter()
    pending: List[Relationship] = []

    async def flush() -> None:
        written = await _write_batch(
            session_factory, "relationship", pending, lambda s, b: RelationshipStore(s).insert_many(b)
        )
        if written is None:
            summary.failed += len(pending)
        else:
            summary.relationships += written
        pending.clear()

    for p in parsed:
        pending.extend(extract_relationships(p.pointers, p.synset.id, valid, seen, drops))
        if len(pending) >= IMPORT_BATCH:
            await flush()
    if pending:
        await flush()

    summary.dropped = dict(drops)
    summary.successful = summary.synsets
    log.info("relationships: %d written, dropped %s", summary.relationships, summary.dropped or "none")
    log.info(summary.line())
    return summary
