# oneword/config.py
from __future__ import annotations

import hashlib
import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Mapping, Optional

import pytz
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError

log = logging.getLogger(__name__)

LEVELS = ("beginner", "intermediate", "advanced")
ENV_PREFIX = "ONEWORD_"
# options given as JSON objects in the environment
_JSON_OPTIONS = {"weights", "thresholds", "per_level_counts", "pos_target_distribution", "pos_complexity"}


class Weights(BaseModel):
    length: float = 0.15
    syllables: float = 0.15
    frequency: float = 0.40
    polysemy: float = 0.10
    pos: float = 0.05
    domain: float = 0.15

    @field_validator("*")
    @classmethod
    def _non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("weights must be non-negative")
        return v

    def total(self) -> float:
        return sum(self.model_dump().values())


class Thresholds(BaseModel):
    beginner_max: float = 0.35
    intermediate_max: float = 0.65

    @model_validator(mode="after")
    def _ordered(self) -> "Thresholds":
        if not (0.0 <= self.beginner_max < self.intermediate_max <= 1.0):
            raise ValueError("thresholds must satisfy 0 <= beginner_max < intermediate_max <= 1")
        return self


def _default_counts() -> Dict[str, int]:
    return {level: 1 for level in LEVELS}


def _default_pos_targets() -> Dict[str, float]:
    return {"noun": 0.4, "verb": 0.3, "adjective": 0.2, "adverb": 0.1}


def _default_pos_complexity() -> Dict[str, float]:
    return {"noun": 0.2, "verb": 0.4, "adjective": 0.6, "adverb": 0.8}


class Settings(BaseModel):
    weights: Weights = Field(default_factory=Weights)
    thresholds: Thresholds = Field(default_factory=Thresholds)

    # daily selection
    lookback_days: int = Field(90, ge=0)
    per_level_counts: Dict[str, int] = Field(default_factory=_default_counts)
    pos_target_distribution: Dict[str, float] = Field(default_factory=_default_pos_targets)
    pos_complexity: Dict[str, float] = Field(default_factory=_default_pos_complexity)

    # frequency signal (Datamuse f: values top out around 70-75 per million)
    max_expected_frequency: float = Field(75.0, gt=0)
    frequency_exponent: float = Field(0.85, gt=0)
    frequency_floor: float = Field(0.1, ge=0, le=1)

    # batch jobs / external API
    batch_size: int = Field(50, ge=1)
    rate_limit_interval_ms: int = Field(1000, ge=0)
    retry_attempts: int = Field(3, ge=1)
    retry_base_delay_ms: int = Field(500, ge=0)
    max_consecutive_failures: int = Field(5, ge=1)
    cache_max_entries: int = Field(10_000, ge=1)
    cache_ttl_seconds: float = Field(3600.0, gt=0)
    datamuse_api_base: str = "https://api.datamuse.com"

    timezone: str = "UTC"

    @field_validator("per_level_counts")
    @classmethod
    def _known_levels(cls, v: Dict[str, int]) -> Dict[str, int]:
        for level, count in v.items():
            if level not in LEVELS:
                raise ValueError(f"unknown difficulty level: {level}")
            # one word per (date, level)
            if count not in (0, 1):
                raise ValueError(f"per-level count for {level} must be 0 or 1, got {count}")
        return v

    @field_validator("pos_target_distribution", "pos_complexity")
    @classmethod
    def _unit_interval(cls, v: Dict[str, float]) -> Dict[str, float]:
        for pos, share in v.items():
            if not (0.0 <= share <= 1.0):
                raise ValueError(f"value for {pos} must be within [0, 1], got {share}")
        return v

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError as e:
            raise ValueError(f"unknown timezone: {v}") from e
        return v

    @classmethod
    def from_dict(cls, data: Mapping) -> "Settings":
        try:
            settings = cls.model_validate(dict(data))
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e
        total = settings.weights.total()
        if abs(total - 1.0) > 1e-6:
            log.warning("difficulty weights sum to %.4f, not 1.0; scores will be clamped", total)
        return settings

    def today(self) -> str:
        return datetime.now(pytz.timezone(self.timezone)).strftime("%Y-%m-%d")

    def scoring_fingerprint(self) -> str:
        """Digest of everything that changes a difficulty score."""
        payload = json.dumps({
            "weights": self.weights.model_dump(),
            "thresholds": self.thresholds.model_dump(),
            "pos_complexity": self.pos_complexity,
            "max_expected_frequency": self.max_expected_frequency,
            "frequency_exponent": self.frequency_exponent,
            "frequency_floor": self.frequency_floor,
        }, sort_keys=True)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from an optional JSON file (ONEWORD_CONFIG) overlaid with
    ONEWORD_<OPTION> environment variables, e.g. ONEWORD_LOOKBACK_DAYS=60 or
    ONEWORD_WEIGHTS='{"frequency": 0.5, ...}'.
    """
    env = os.environ if environ is None else environ
    data: Dict[str, object] = {}

    path = env.get(ENV_PREFIX + "CONFIG")
    if path:
        try:
            loaded = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"cannot read config file {path}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"config file {path} must hold a JSON object")
        data.update(loaded)

    for name in Settings.model_fields:
        raw = env.get(ENV_PREFIX + name.upper())
        if raw is None:
            continue
        if name in _JSON_OPTIONS:
            try:
                data[name] = json.loads(raw)
            except ValueError as e:
                raise ConfigurationError(f"{ENV_PREFIX}{name.upper()} is not valid JSON: {e}") from e
        else:
            data[name] = raw

    return Settings.from_dict(data)
