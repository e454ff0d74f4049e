# oneword/main.py
from __future__ import annotations

import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, load_settings
from .daily import select_for_date, select_for_range
from .db_pg import SessionLocal, create_all, ping
from .errors import WordNotFound
from .schema import (
    DailyWordOut, DailyWordsResponse, DateSelection, DifficultyOut, SelectRequest, SelectResponse,
)
from .scoring import score_single
from .selector import Assignment, parse_ymd

log = logging.getLogger(__name__)

# ───────── App ─────────
app = FastAPI(title="OneWord API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],      # tighten before launch
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# ───────── Dependencies ─────────
async def get_db() -> AsyncSession:
    async with SessionLocal() as session:
        yield session


@lru_cache
def get_settings() -> Settings:
    return load_settings()


def _out(a: Assignment) -> DailyWordOut:
    return DailyWordOut(
        date=a.ymd,
        difficulty_level=a.level,
        word=a.word,
        word_id=a.word_id,
        pos=a.pos,
        relaxed_constraint=a.relaxed_constraint,
    )


def _check_date(ymd: str) -> None:
    try:
        parse_ymd(ymd)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ───────── Lifecycle ─────────
@app.on_event("startup")
async def on_startup():
    get_settings()          # bad configuration fails here, not mid-request
    await ping()
    await create_all()


@app.get("/healthz")
async def healthz():
    return {"ok": True}


# ───────── /daily-words (selected on first request for a date) ─────────
@app.get("/daily-words", response_model=DailyWordsResponse)
async def daily_words(
    date: Optional[str] = Query(None, description="YYYY-MM-DD; defaults to today"),
    refresh: bool = Query(False, description="Replace the words already chosen for the date"),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    ymd = date or settings.today()
    _check_date(ymd)
    try:
        day = await select_for_date(db, ymd, settings, force=refresh)
    except SQLAlchemyError as e:
        raise HTTPException(status_code=502, detail=f"Database failure: {e}")

    if not day.assignments:
        raise HTTPException(status_code=404, detail=f"No scored words available for {ymd}")
    items = [_out(a) for a in day.assignments]
    return DailyWordsResponse(date=ymd, count=len(items), items=items, existing=day.existing)


@app.post("/daily-words/select", response_model=SelectResponse)
async def select_daily_words(
    body: SelectRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    _check_date(body.date)
    try:
        days, summary = await select_for_range(db, body.date, body.days, settings, force=body.force)
    except SQLAlchemyError as e:
        raise HTTPException(status_code=502, detail=f"Database failure: {e}")

    dates: List[DateSelection] = [
        DateSelection(date=d.ymd, existing=d.existing, words=[_out(a) for a in d.assignments])
        for d in days
    ]
    return SelectResponse(dates=dates, summary=summary)


# ───────── /words/{word}/difficulty ─────────
@app.get("/words/{word}/difficulty", response_model=DifficultyOut, response_model_exclude_none=True)
async def word_difficulty(
    word: str,
    include_factors: bool = Query(False, description="Return the per-factor sub-scores"),
    persist: bool = Query(True, description="Store the computed score on the word"),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        out = await score_single(db, word, settings, persist=persist)
    except WordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SQLAlchemyError as e:
        raise HTTPException(status_code=502, detail=f"Database failure: {e}")

    if not include_factors:
        out.factors = None
    return out
