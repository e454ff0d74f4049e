# oneword/wordnet.py
"""
Parser for WordNet database files.

A data.<pos> line looks like

    00001740 03 n 01 entity 0 003 ~ 00001930 n 0000 ~ 00002137 n 0000 | gloss

i.e. offset, lexicographer file, POS letter, word count (2 hex digits),
(word, lex_id) pairs, pointer count (3 decimal digits), 4-token pointers,
optional verb frames, then the gloss after '|'.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .relationships import relationship_type_for

# ───────── Tables ─────────
POS_NAMES = {
    "n": "noun",
    "v": "verb",
    "a": "adjective",
    "s": "adjective_satellite",
    "r": "adverb",
}

DATA_FILES = {"n": "data.noun", "v": "data.verb", "a": "data.adj", "r": "data.adv"}

# index.sense ss_type -> POS letter
SS_TYPES = {"1": "n", "2": "v", "3": "a", "4": "r", "5": "s"}

LEXICOGRAPHER_FILES = [
    "adj.all", "adj.pert", "adv.all", "noun.Tops", "noun.act", "noun.animal",
    "noun.artifact", "noun.attribute", "noun.body", "noun.cognition",
    "noun.communication", "noun.event", "noun.feeling", "noun.food",
    "noun.group", "noun.location", "noun.motive", "noun.object",
    "noun.person", "noun.phenomenon", "noun.plant", "noun.possession",
    "noun.process", "noun.quantity", "noun.relation", "noun.shape",
    "noun.state", "noun.substance", "noun.time", "verb.body", "verb.change",
    "verb.cognition", "verb.communication", "verb.competition",
    "verb.consumption", "verb.contact", "verb.creation", "verb.emotion",
    "verb.motion", "verb.perception", "verb.possession", "verb.social",
    "verb.stative", "verb.weather", "adj.ppl",
]

_HEADER = re.compile(r"^(\d{8}) (\d{2}) ([nvasr]) ([0-9a-fA-F]{2})(?=\s|$)")
_OFFSET = re.compile(r"^\d{8}$")
_SOURCE_TARGET = re.compile(r"^[0-9a-fA-F]{4}$")
_POINTER_COUNT = re.compile(r"^\d{3}$")
_ADJ_MARKER = re.compile(r"\((?:a|p|ip)\)$")
_QUOTED = re.compile(r'"([^"]*)"')
_EXAMPLE_MARKER = re.compile(r"^e\.g\.[:,]?\s*", re.IGNORECASE)


def synset_id(pos: str, offset) -> str:
    """'n' + 1740 -> 'n00001740'"""
    return f"{pos}{str(offset).zfill(8)}"


# ───────── Records ─────────
@dataclass(frozen=True)
class SynsetWord:
    lemma: str
    lex_id: int


@dataclass(frozen=True)
class PointerRecord:
    symbol: str
    target_offset: str
    target_pos: str
    source_target: str = "0000"

    @property
    def target_id(self) -> str:
        return synset_id(self.target_pos, self.target_offset)


@dataclass(frozen=True)
class RelationshipCandidate:
    from_synset_id: str
    to_synset_id: str
    relationship_type: str
    symbol: str


@dataclass(frozen=True)
class Synset:
    id: str
    offset: int
    pos: str
    lex_filenum: int
    definition: str
    examples: Tuple[str, ...] = ()
    words: Tuple[SynsetWord, ...] = ()

    @property
    def domain(self) -> Optional[str]:
        if 0 <= self.lex_filenum < len(LEXICOGRAPHER_FILES):
            return LEXICOGRAPHER_FILES[self.lex_filenum]
        return None

    @property
    def part_of_speech(self) -> str:
        return POS_NAMES[self.pos]


@dataclass(frozen=True)
class ParsedLine:
    synset: Synset
    pointers: Tuple[PointerRecord, ...] = ()
    truncated: bool = False

    @property
    def relationship_candidates(self) -> List[RelationshipCandidate]:
        """Pointers with a known type; no self-loop or integrity filtering."""
        out: List[RelationshipCandidate] = []
        for p in self.pointers:
            rel_type = relationship_type_for(p.symbol, self.synset.pos)
            if rel_type:
                out.append(RelationshipCandidate(self.synset.id, p.target_id, rel_type, p.symbol))
        return out


@dataclass(frozen=True)
class SenseEntry:
    word: str
    synset_id: str
    sense_number: int
    tag_count: int


# ───────── Gloss ─────────
def _split_outside_quotes(text: str, sep: str = ";") -> List[str]:
    parts: List[str] = []
    buf: List[str] = []
    quoted = False
    for ch in text:
        if ch == '"':
            quoted = not quoted
        if ch == sep and not quoted:
            parts.append("".join(buf))
            buf = []
            continue
        buf.append(ch)
    parts.append("".join(buf))
    return parts


def split_gloss(gloss: str) -> Tuple[str, List[str]]:
    """
    Split a gloss into (definition, examples).

    The definition is the first ';' segment. Later segments contribute their
    quoted strings, or the text after an 'e.g.' marker. Any other segment is
    dropped.
    """
    segments = _split_outside_quotes(gloss or "")
    definition = segments[0].strip()
    examples: List[str] = []
    for seg in segments[1:]:
        seg = seg.strip()
        if not seg:
            continue
        quoted = [q.strip() for q in _QUOTED.findall(seg) if q.strip()]
        if quoted:
            examples.extend(quoted)
            continue
        m = _EXAMPLE_MARKER.match(seg)
        if m:
            rest = seg[m.end():].strip()
            if rest:
                examples.append(rest)
    return definition, examples


def normalize_lemma(raw: str) -> str:
    return _ADJ_MARKER.sub("", raw).replace("_", " ")


# ───────── Lines ─────────
def parse_line(line: str) -> Optional[ParsedLine]:
    """
    Parse one data.<pos> line. Header/comment lines and lines that do not
    start with a valid synset header give None. A line whose word or pointer
    section runs short is returned with what was read and truncated=True.
    """
    if is_comment_line(line):
        return None

    m = _HEADER.match(line)
    if not m:
        return None
    offset, lex_filenum, pos, w_cnt = m.groups()

    data, bar, gloss = line.rpartition("|")
    if not bar:
        data, gloss = line, ""
    definition, examples = split_gloss(gloss.strip())

    tokens = data.split()
    idx = 4
    truncated = False

    words: List[SynsetWord] = []
    for _ in range(int(w_cnt, 16)):
        if idx + 1 >= len(tokens):
            truncated = True
            break
        lemma, lex_id = tokens[idx], tokens[idx + 1]
        idx += 2
        try:
            words.append(SynsetWord(normalize_lemma(lemma), int(lex_id, 16)))
        except ValueError:
            truncated = True
            break

    pointers: List[PointerRecord] = []
    if not truncated:
        if idx < len(tokens) and _POINTER_COUNT.match(tokens[idx]):
            p_cnt = int(tokens[idx])
            idx += 1
            for _ in range(p_cnt):
                chunk = tokens[idx:idx + 4]
                if len(chunk) < 4:
                    truncated = True
                    break
                symbol, target_offset, target_pos, source_target = chunk
                if not (_OFFSET.match(target_offset) and target_pos in POS_NAMES
                        and _SOURCE_TARGET.match(source_target)):
                    truncated = True
                    break
                pointers.append(PointerRecord(symbol, target_offset, target_pos, source_target))
                idx += 4
        else:
            truncated = True

    synset = Synset(
        id=synset_id(pos, offset),
        offset=int(offset),
        pos=pos,
        lex_filenum=int(lex_filenum),
        definition=definition,
        examples=tuple(examples),
        words=tuple(words),
    )
    return ParsedLine(synset=synset, pointers=tuple(pointers), truncated=truncated)


def parse_sense_line(line: str) -> Optional[SenseEntry]:
    """index.sense: 'sense_key synset_offset sense_number tag_count'"""
    if is_comment_line(line):
        return None
    parts = line.split()
    if len(parts) < 4:
        return None
    sense_key, offset, sense_number, tag_count = parts[:4]
    lemma, sep, lex_sense = sense_key.partition("%")
    if not sep or not lex_sense:
        return None
    pos = SS_TYPES.get(lex_sense[0])
    if pos is None or not _OFFSET.match(offset):
        return None
    try:
        return SenseEntry(
            word=normalize_lemma(lemma).lower(),
            synset_id=synset_id(pos, offset),
            sense_number=int(sense_number),
            tag_count=int(tag_count),
        )
    except ValueError:
        return None


def is_comment_line(line: str) -> bool:
    return not line.strip() or line.startswith("  ")


def iter_data_file(path: Path) -> Iterator[Tuple[int, str, Optional[ParsedLine]]]:
    with Path(path).open("r", encoding="utf-8", errors="replace") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.rstrip("\r\n")
            yield lineno, line, parse_line(line)


def iter_sense_file(path: Path) -> Iterator[SenseEntry]:
    with Path(path).open("r", encoding="utf-8", errors="replace") as f:
        for line in f:
            entry = parse_sense_line(line.rstrip("\r\n"))
            if entry:
                yield entry
