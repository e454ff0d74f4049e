# oneword/eligibility.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

ELIGIBLE_WORD = "eligible-word"
ELIGIBLE_PHRASE = "eligible-phrase"
INELIGIBLE = "ineligible"

# function words and everyday vocabulary that make poor daily words
BASIC_WORDS = frozenset("""
the a an in on at by for to of with under over through above below from into onto
upon within without is are was were be been being have has had do does did can
could will would shall should may might must and but or nor yet so because although
since unless whether while i you he she it we they me him her us them my your his
its our their mine yours hers ours theirs this that these those who whom whose which
what when where why how each every either neither some any no many much few little
not very too only just also then still rather one two three four five six seven
eight nine ten first second third hundred thousand day week month year time today
tomorrow yesterday now always never often sometimes happy sad angry good bad nice
mean like love hate want need hope fear big small large tall short long hot cold
warm cool new old young high low more less most least all none same different other
another best worst better worse easy hard simple full empty heavy light dark bright
fast slow quick early late right wrong true false real go come get take make give
put say tell ask see look hear think know feel find use work play read write eat
drink sleep sit stand run walk start stop end buy sell pay open close here there
lol omg btw fyi asap etc vs
""".split())

_DIGITS = re.compile(r"\d")
_ALLOWED = re.compile(r"^[a-zA-Z\- ]+$")
_REPEATED = re.compile(r"(.{2,})\1{2,}")


@dataclass(frozen=True)
class Eligibility:
    status: str
    reason: Optional[str] = None

    @property
    def eligible(self) -> bool:
        return self.status != INELIGIBLE


def _reject(reason: str) -> Eligibility:
    return Eligibility(INELIGIBLE, reason)


def classify(raw: str) -> Eligibility:
    """Decide whether a dictionary entry can become a daily word (or phrase)."""
    word = (raw or "").strip()
    if len(word) < 3:
        return _reject("too short")
    if _DIGITS.search(word):
        return _reject("contains digits")
    if "'" in word:
        return _reject("contains an apostrophe")
    if not _ALLOWED.match(word):
        return _reject("contains special characters")
    if word.isupper() and len(word) <= 5:
        return _reject("abbreviation")
    if word[0].isupper():
        return _reject("proper noun")

    lower = word.lower()
    if lower in BASIC_WORDS:
        return _reject("basic word")
    if _REPEATED.search(lower):
        return _reject("repetitive pattern")

    for part in lower.split():
        if part.count("-") > 1:
            return _reject("multiple hyphens")
        if "-" in part and any(len(p) < 2 for p in part.split("-")):
            return _reject("short hyphenated part")

    if " " in lower:
        return Eligibility(ELIGIBLE_PHRASE)
    return Eligibility(ELIGIBLE_WORD)
