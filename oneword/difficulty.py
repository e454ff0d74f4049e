# oneword/difficulty.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Sequence

from .config import Settings, Thresholds
from .frequency import frequency_signal


class DifficultyLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


# stems matched at a word boundary against domain tags and definitions
TECHNICAL_STEMS = (
    r"medic(?:al|ation|ine)\b(?!-)", "clinic", "patholog", "anatom", "physiolog",
    r"surg(?:eon|ery|ical)", "pharmac",
    "legal", r"law\b", "statut", "juris", "judicial",
    "scien", "biolog", "biochem", "chemi", r"physics\b", "mathemat", "geolog",
    "astronom", "botan", "zoolog", "genet",
    "financ", "econom", "technolog", "technical", "engineer", "academic",
    "comput",
)
_TECHNICAL = re.compile(r"\b(?:" + "|".join(TECHNICAL_STEMS) + r")", re.IGNORECASE)

_VOWELS = set("aeiouy")


@dataclass(frozen=True)
class SenseFeatures:
    definition: str = ""
    domain: Optional[str] = None


@dataclass
class WordFeatures:
    word: str
    pos: Optional[str] = None                # noun / verb / adjective / adverb ...
    frequency: Optional[float] = None         # raw Datamuse f: value; None = not measured
    syllable_count: Optional[int] = None
    polysemy_count: int = 0
    senses: Sequence[SenseFeatures] = field(default_factory=tuple)


@dataclass(frozen=True)
class DifficultyResult:
    score: float
    level: DifficultyLevel
    components: Dict[str, float]
    frequency_measured: bool


# ───────── Sub-scores (0..1, higher = harder) ─────────
def length_score(word: str) -> float:
    n = len(word)
    if n <= 3:
        return 0.0
    if n <= 5:
        return 0.2
    if n <= 7:
        return 0.4
    if n <= 9:
        return 0.6
    if n <= 12:
        return 0.8
    return 1.0


def estimate_syllables(word: str) -> int:
    w = re.sub(r"[^a-z]", "", (word or "").lower())
    if not w:
        return 0
    if len(w) <= 3:
        return 1
    count = 0
    prev_vowel = False
    for ch in w:
        is_vowel = ch in _VOWELS
        if is_vowel and not prev_vowel:
            count += 1
        prev_vowel = is_vowel
    # silent final e ("make"), but not "-le" endings ("table")
    if w.endswith("e") and w[-2] not in _VOWELS and not w.endswith("le"):
        count -= 1
    return max(count, 1)


def syllable_score(syllables: int) -> float:
    if syllables <= 1:
        return 0.0
    if syllables == 2:
        return 0.3
    if syllables == 3:
        return 0.6
    return min(0.9, 0.6 + (syllables - 3) * 0.1)


def polysemy_score(senses: int) -> float:
    # many senses usually means a common, basic word
    if senses <= 0:
        return 0.5
    if senses == 1:
        return 0.8
    if senses == 2:
        return 0.6
    if senses <= 4:
        return 0.4
    if senses <= 7:
        return 0.2
    return 0.0


def pos_complexity(pos: Optional[str], ranking: Mapping[str, float]) -> float:
    return ranking.get(pos or "", 0.5)


def domain_specificity(senses: Sequence[SenseFeatures]) -> float:
    if not senses:
        return 0.5
    technical = sum(
        1 for s in senses
        if _TECHNICAL.search(s.domain or "") or _TECHNICAL.search(s.definition or "")
    )
    return technical / len(senses)


# ───────── Composite ─────────
def level_for_score(score: float, thresholds: Thresholds) -> DifficultyLevel:
    if score < thresholds.beginner_max:
        return DifficultyLevel.BEGINNER
    if score < thresholds.intermediate_max:
        return DifficultyLevel.INTERMEDIATE
    return DifficultyLevel.ADVANCED


def score_word(features: WordFeatures, settings: Optional[Settings] = None) -> DifficultyResult:
    """Weighted sum of the sub-scores, clamped to [0, 1], then mapped to a tier. Pure."""
    settings = settings or Settings()
    w = settings.weights

    syllables = features.syllable_count or estimate_syllables(features.word)
    freq = frequency_signal(features.frequency, settings)
    components = {
        "length": length_score(features.word),
        "syllables": syllable_score(syllables),
        "frequency": freq.value,
        "polysemy": polysemy_score(features.polysemy_count),
        "pos": pos_complexity(features.pos, settings.pos_complexity),
        "domain": domain_specificity(features.senses),
    }
    raw = (
        w.length * components["length"]
        + w.syllables * components["syllables"]
        + w.frequency * components["frequency"]
        + w.polysemy * components["polysemy"]
        + w.pos * components["pos"]
        + w.domain * components["domain"]
    )
    score = round(max(0.0, min(1.0, raw)), 4)
    return DifficultyResult(
        score=score,
        level=level_for_score(score, settings.thresholds),
        components={k: round(v, 4) for k, v in components.items()},
        frequency_measured=freq.measured,
    )
