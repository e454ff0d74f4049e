# oneword/schema.py
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class DailyWordOut(BaseModel):
    date: str
    difficulty_level: str
    word: str
    word_id: int
    pos: Optional[str] = None
    relaxed_constraint: bool = False


class DailyWordsResponse(BaseModel):
    date: str
    count: int
    items: List[DailyWordOut]
    existing: bool = False   # already assigned before this request


class SelectRequest(BaseModel):
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    days: int = Field(1, ge=1, le=366)
    force: bool = False


class DateSelection(BaseModel):
    date: str
    existing: bool
    words: List[DailyWordOut]


class SelectResponse(BaseModel):
    dates: List[DateSelection]
    summary: "RunSummary"


class DifficultyOut(BaseModel):
    word: str
    score: Optional[float] = None
    level: Optional[str] = None
    frequency_measured: bool = False
    persisted: bool = False
    skipped_reason: Optional[str] = None
    factors: Optional[Dict[str, float]] = None


class RunSummary(BaseModel):
    """End-of-run counts for a batch job."""
    job: str
    processed: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    relaxed: int = 0
    last_processed_id: Optional[int] = None
    aborted: bool = False

    def line(self) -> str:
        parts = [f"processed={self.processed}", f"successful={self.successful}",
                 f"failed={self.failed}", f"skipped={self.skipped}"]
        if self.relaxed:
            parts.append(f"relaxed={self.relaxed}")
        if self.aborted:
            parts.append("ABORTED")
        return f"[{self.job}] " + " ".join(parts)


class ImportSummary(RunSummary):
    job: str = "import"
    lines: int = 0
    synsets: int = 0
    words: int = 0
    links: int = 0
    relationships: int = 0
    truncated: int = 0
    dropped: Dict[str, int] = Field(default_factory=dict)

    def line(self) -> str:
        extra = (f" lines={self.lines} synsets={self.synsets} words={self.words} links={self.links}"
                 f" relationships={self.relationships} truncated={self.truncated}")
        if self.dropped:
            extra += " dropped=" + ",".join(f"{k}:{v}" for k, v in sorted(self.dropped.items()))
        return super().line() + extra


SelectResponse.model_rebuild()
