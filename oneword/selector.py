# oneword/selector.py
from __future__ import annotations

import hashlib
import logging
import sys
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .config import LEVELS

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    word_id: int
    word: str
    pos: Optional[str]
    level: str
    score: Optional[float] = None


@dataclass(frozen=True)
class Assignment:
    ymd: str
    level: str
    word_id: int
    word: str
    pos: Optional[str] = None
    relaxed_constraint: bool = False


# ───────── Dates ─────────
def parse_ymd(ymd: str) -> date:
    try:
        return date.fromisoformat(ymd)
    except (TypeError, ValueError):
        raise ValueError(f"invalid date {ymd!r}, expected YYYY-MM-DD") from None


def shift(ymd: str, days: int) -> str:
    return (parse_ymd(ymd) + timedelta(days=days)).isoformat()


def date_range(start: str, days: int) -> List[str]:
    first = parse_ymd(start)
    return [(first + timedelta(days=i)).isoformat() for i in range(days)]


# ───────── Ranking ─────────
def tiebreak(ymd: str, level: str, word: str) -> str:
    """Stable per (date, level) ordering that still rotates from day to day."""
    return hashlib.sha256(f"{ymd}|{level}|{word}".encode("utf-8")).hexdigest()


def pos_priority(pos: Optional[str], usage: Counter, targets: Mapping[str, float]) -> float:
    """Target share minus the share already picked today; higher = more wanted."""
    total = sum(usage.values())
    used = usage[pos] / total if total else 0.0
    return targets.get(pos or "", 0.0) - used


class DailyWordSelector:
    """
    Picks words per difficulty level for a date.

    pools:   eligible candidates per level
    history: date -> word ids already assigned on that date (any level)

    Words assigned within lookback_days of the date, on either side, are
    excluded, so dates may be selected in any order. When that leaves a level
    with nothing, the word whose nearest use is furthest away is reused and
    the assignment is flagged relaxed_constraint.
    """

    def __init__(
        self,
        pools: Mapping[str, Sequence[Candidate]],
        history: Optional[Mapping[str, Iterable[int]]] = None,
        lookback_days: int = 90,
        pos_target_distribution: Optional[Mapping[str, float]] = None,
    ):
        self.pools: Dict[str, List[Candidate]] = {level: list(c) for level, c in pools.items()}
        self.history: Dict[str, Set[int]] = defaultdict(set)
        for ymd, ids in (history or {}).items():
            self.history[ymd].update(ids)
        self.lookback_days = lookback_days
        self.targets = dict(pos_target_distribution or {})

    def record(self, ymd: str, word_ids: Iterable[int]) -> None:
        self.history[ymd] = set(word_ids)

    def forget(self, ymd: str) -> None:
        self.history.pop(ymd, None)

    def _window(self, ymd: str):
        start, end = shift(ymd, -self.lookback_days), shift(ymd, self.lookback_days)
        return ((d, ids) for d, ids in self.history.items() if start <= d <= end and d != ymd)

    def recently_used(self, ymd: str) -> Set[int]:
        used: Set[int] = set()
        for _, ids in self._window(ymd):
            used |= ids
        return used

    def _nearest_use(self, ymd: str) -> Dict[int, int]:
        """word id -> days between ymd and the closest other date it was assigned to"""
        day = parse_ymd(ymd)
        nearest: Dict[int, int] = {}
        for d, ids in self.history.items():
            if d == ymd:
                continue
            gap = abs((parse_ymd(d) - day).days)
            for wid in ids:
                if gap < nearest.get(wid, gap + 1):
                    nearest[wid] = gap
        return nearest

    def select_for_date(
        self,
        ymd: str,
        per_level_counts: Mapping[str, int],
        exclude: Iterable[int] = (),
    ) -> List[Assignment]:
        """
        `exclude` holds word ids to avoid on top of the lookback window, such
        as the words a forced re-selection replaces. They are only reused,
        flagged relaxed, when nothing else is left.
        """
        parse_ymd(ymd)
        recent = self.recently_used(ymd)
        avoid = set(exclude)
        usage: Counter = Counter()
        taken: Set[int] = set()
        picks: List[Assignment] = []
        nearest: Optional[Dict[int, int]] = None

        for level in LEVELS:
            for _ in range(per_level_counts.get(level, 0)):
                pool = [c for c in self.pools.get(level, ()) if c.word_id not in taken]
                if not pool:
                    log.warning("no %s candidates for %s", level, ymd)
                    break

                fresh = [c for c in pool if c.word_id not in recent and c.word_id not in avoid]
                if fresh:
                    best = min(fresh, key=lambda c: (
                        -pos_priority(c.pos, usage, self.targets),
                        tiebreak(ymd, level, c.word),
                    ))
                    relaxed = False
                else:
                    if nearest is None:
                        nearest = self._nearest_use(ymd)
                    fallback = [c for c in pool if c.word_id not in avoid] or pool
                    best = min(fallback, key=lambda c: (
                        -nearest.get(c.word_id, sys.maxsize),
                        -pos_priority(c.pos, usage, self.targets),
                        tiebreak(ymd, level, c.word),
                    ))
                    relaxed = True
                    log.warning("all %s words used within %d days of %s; reusing %r",
                                level, self.lookback_days, ymd, best.word)

                picks.append(Assignment(ymd, level, best.word_id, best.word, best.pos, relaxed))
                usage[best.pos] += 1
                taken.add(best.word_id)

        self.record(ymd, taken)
        return picks
