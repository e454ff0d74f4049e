# oneword/relationships.py
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional, Set, Tuple

if TYPE_CHECKING:
    from .wordnet import PointerRecord

# WordNet pointer symbols. The table is closed: anything else is noise.
RELATIONSHIP_TYPES = {
    "@": "hypernym",
    "~": "hyponym",
    "#m": "member_holonym",
    "#s": "substance_holonym",
    "#p": "part_holonym",
    "%m": "member_meronym",
    "%s": "substance_meronym",
    "%p": "part_meronym",
    "=": "attribute",
    "+": "derivationally_related",
    ";c": "domain_topic",
    "-c": "member_of_domain_topic",
    ";r": "domain_region",
    "-r": "member_of_domain_region",
    ";u": "domain_usage",
    "-u": "member_of_domain_usage",
    "*": "entailment",
    ">": "cause",
    "^": "also_see",
    "$": "verb_group",
    "!": "antonym",
    "<": "participle",
    "\\": "pertainym",
}

# '\' is "pertains to noun" on adjectives but "derived from adjective" on adverbs
_POS_OVERRIDES = {("\\", "r"): "derived_from"}

Triple = Tuple[str, str, str]


@dataclass(frozen=True)
class Relationship:
    from_synset_id: str
    to_synset_id: str
    relationship_type: str

    @property
    def key(self) -> Triple:
        return (self.from_synset_id, self.to_synset_id, self.relationship_type)


def relationship_type_for(symbol: str, source_pos: Optional[str] = None) -> Optional[str]:
    """Two-character lookup first (';c', '#m'), then the first character ('@i' -> '@')."""
    if not symbol:
        return None
    for key in (symbol[:2], symbol[:1]):
        rel_type = RELATIONSHIP_TYPES.get(key)
        if rel_type:
            return _POS_OVERRIDES.get((key, source_pos or ""), rel_type)
    return None


def extract_relationships(
    pointers: Iterable["PointerRecord"],
    source_synset_id: str,
    valid_synset_ids: Set[str],
    seen: Optional[Set[Triple]] = None,
    drops: Optional[Counter] = None,
) -> List[Relationship]:
    """
    Turn parsed pointers into relationships that are safe to store.

    Drops unknown symbols, self-loops and targets missing from
    `valid_synset_ids`. Pass the same `seen` set across a batch to remove
    duplicate (from, to, type) triples; `drops` counts every discarded pointer
    by reason.
    """
    seen = set() if seen is None else seen
    drops = Counter() if drops is None else drops
    source_pos = source_synset_id[:1]

    out: List[Relationship] = []
    for p in pointers:
        rel_type = relationship_type_for(p.symbol, source_pos)
        if rel_type is None:
            drops["unknown_symbol"] += 1
            continue
        target = p.target_id
        if target == source_synset_id:
            drops["self_loop"] += 1
            continue
        if target not in valid_synset_ids or source_synset_id not in valid_synset_ids:
            drops["dangling"] += 1
            continue
        rel = Relationship(source_synset_id, target, rel_type)
        if rel.key in seen:
            drops["duplicate"] += 1
            continue
        seen.add(rel.key)
        out.append(rel)
    return out
