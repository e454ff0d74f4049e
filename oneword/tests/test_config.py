# oneword/tests/test_config.py
import json

import pytest

from oneword.config import Settings, load_settings
from oneword.eligibility import ELIGIBLE_PHRASE, ELIGIBLE_WORD, INELIGIBLE, classify
from oneword.errors import ConfigurationError


# ───────── settings ─────────
def test_defaults():
    s = load_settings({})
    assert s.lookback_days == 90
    assert s.per_level_counts == {"beginner": 1, "intermediate": 1, "advanced": 1}
    assert s.weights.total() == pytest.approx(1.0)
    assert s.max_expected_frequency == 75.0


@pytest.mark.parametrize("data", [
    {"thresholds": {"beginner_max": 0.7, "intermediate_max": 0.6}},
    {"thresholds": {"beginner_max": 0.5, "intermediate_max": 0.5}},
    {"weights": {"frequency": -0.1}},
    {"per_level_counts": {"beginner": 2}},
    {"per_level_counts": {"expert": 1}},
    {"max_expected_frequency": 0},
    {"timezone": "Mars/Olympus_Mons"},
])
def test_invalid_settings_are_rejected(data):
    with pytest.raises(ConfigurationError):
        Settings.from_dict(data)


def test_environment_overrides():
    s = load_settings({
        "ONEWORD_LOOKBACK_DAYS": "30",
        "ONEWORD_WEIGHTS": '{"frequency": 0.5, "domain": 0.05}',
        "ONEWORD_TIMEZONE": "Asia/Riyadh",
    })
    assert s.lookback_days == 30
    assert s.weights.frequency == 0.5
    assert s.weights.length == 0.15
    assert s.timezone == "Asia/Riyadh"


def test_config_file_then_environment(tmp_path):
    path = tmp_path / "oneword.json"
    path.write_text(json.dumps({"lookback_days": 10, "batch_size": 7}), encoding="utf-8")
    s = load_settings({"ONEWORD_CONFIG": str(path), "ONEWORD_BATCH_SIZE": "9"})
    assert s.lookback_days == 10
    assert s.batch_size == 9


def test_bad_json_in_environment():
    with pytest.raises(ConfigurationError):
        load_settings({"ONEWORD_THRESHOLDS": "{beginner_max: 0.3"})


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_settings({"ONEWORD_CONFIG": str(tmp_path / "nope.json")})


def test_fingerprint_tracks_scoring_settings():
    base = Settings()
    assert base.scoring_fingerprint() == Settings().scoring_fingerprint()
    assert base.scoring_fingerprint() != Settings.from_dict({"thresholds": {"beginner_max": 0.3}}).scoring_fingerprint()
    # selection settings do not affect scores
    assert base.scoring_fingerprint() == Settings(lookback_days=5).scoring_fingerprint()


def test_today_format():
    assert len(Settings().today()) == 10


# ───────── eligibility ─────────
@pytest.mark.parametrize("word,status,reason", [
    ("ameliorate", ELIGIBLE_WORD, None),
    ("well-being", ELIGIBLE_WORD, None),
    ("physical entity", ELIGIBLE_PHRASE, None),
    ("ox", INELIGIBLE, "too short"),
    ("b52s", INELIGIBLE, "contains digits"),
    ("o'clock", INELIGIBLE, "contains an apostrophe"),
    ("a.m.", INELIGIBLE, "contains special characters"),
    ("Einstein", INELIGIBLE, "proper noun"),
    ("NASA", INELIGIBLE, "abbreviation"),
    ("because", INELIGIBLE, "basic word"),
    ("hahahaha", INELIGIBLE, "repetitive pattern"),
    ("jack-in-the-box", INELIGIBLE, "multiple hyphens"),
    ("x-ray", INELIGIBLE, "short hyphenated part"),
])
def test_classify(word, status, reason):
    result = classify(word)
    assert result.status == status
    assert result.reason == reason
