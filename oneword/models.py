# oneword/models.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, DateTime, Float, ForeignKey, Integer, String, Text,
    UniqueConstraint, func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from .db_pg import Base

JSONList = JSON().with_variant(JSONB(), "postgresql")


class Synset(Base):
    __tablename__ = "synsets"

    # pos letter + 8-digit offset, e.g. n00001740
    id: Mapped[str] = mapped_column(String(9), primary_key=True)
    offset: Mapped[int] = mapped_column(Integer, nullable=False)
    pos: Mapped[str] = mapped_column(String(1), nullable=False)
    lex_filenum: Mapped[int] = mapped_column(Integer, nullable=False)
    domain: Mapped[str | None] = mapped_column(String(64), nullable=True)
    definition: Mapped[str] = mapped_column(Text, nullable=False, default="")
    examples: Mapped[list[str] | None] = mapped_column(JSONList, nullable=True)


class Word(Base):
    __tablename__ = "words"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    word: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    pos: Mapped[str | None] = mapped_column(String(32), nullable=True)
    polysemy: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # eligible-word / eligible-phrase / ineligible
    eligibility: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    eligibility_reason: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # enrichment: raw Datamuse f: value and its 0..1 commonness
    frequency: Mapped[float | None] = mapped_column(Float, nullable=True)
    frequency_signal: Mapped[float | None] = mapped_column(Float, nullable=True)
    syllable_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    enrichment_status: Mapped[str | None] = mapped_column(String(16), nullable=True)
    enriched_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    difficulty_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    difficulty_level: Mapped[str | None] = mapped_column(String(16), nullable=True, index=True)
    difficulty_fingerprint: Mapped[str | None] = mapped_column(String(16), nullable=True)


class WordSynset(Base):
    __tablename__ = "word_synsets"

    word_id: Mapped[int] = mapped_column(ForeignKey("words.id", ondelete="CASCADE"), primary_key=True)
    synset_id: Mapped[str] = mapped_column(ForeignKey("synsets.id", ondelete="CASCADE"), primary_key=True)
    sense_number: Mapped[int] = mapped_column(Integer, nullable=False)
    tag_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Relationship(Base):
    __tablename__ = "relationships"
    __table_args__ = (
        UniqueConstraint("from_synset_id", "to_synset_id", "relationship_type", name="uq_relationship"),
        CheckConstraint("from_synset_id <> to_synset_id", name="ck_relationship_no_self_loop"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_synset_id: Mapped[str] = mapped_column(ForeignKey("synsets.id", ondelete="CASCADE"), nullable=False)
    to_synset_id: Mapped[str] = mapped_column(ForeignKey("synsets.id", ondelete="CASCADE"), nullable=False)
    relationship_type: Mapped[str] = mapped_column(String(40), nullable=False)


class DailyWord(Base):
    __tablename__ = "daily_words"
    __table_args__ = (UniqueConstraint("ymd", "difficulty_level", name="uq_daily_word_date_level"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ymd: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    difficulty_level: Mapped[str] = mapped_column(String(16), nullable=False)
    word_id: Mapped[int] = mapped_column(ForeignKey("words.id", ondelete="CASCADE"), nullable=False)
    word: Mapped[str] = mapped_column(String(256), nullable=False)
    pos: Mapped[str | None] = mapped_column(String(32), nullable=True)
    relaxed_constraint: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class JobCheckpoint(Base):
    __tablename__ = "job_checkpoints"

    job: Mapped[str] = mapped_column(String(32), primary_key=True)
    last_processed_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    successful: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skipped: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
