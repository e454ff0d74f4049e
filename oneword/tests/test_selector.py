# oneword/tests/test_selector.py
from itertools import combinations

import pytest

from oneword.selector import Candidate, DailyWordSelector, date_range, parse_ymd, shift, tiebreak

ALL = {"beginner": 1, "intermediate": 1, "advanced": 1}


def pools_of(n):
    levels = ("beginner", "intermediate", "advanced")
    pos = ("noun", "verb", "adjective", "adverb")
    return {
        level: [Candidate(li * 100 + i, f"{level}{i}", pos[i % len(pos)], level) for i in range(n)]
        for li, level in enumerate(levels)
    }


def test_one_word_per_level():
    pools = {
        "beginner": [Candidate(1, "teach", "verb", "beginner")],
        "intermediate": [Candidate(2, "concept", "noun", "intermediate")],
        "advanced": [Candidate(3, "ameliorate", "verb", "advanced")],
    }
    picks = DailyWordSelector(pools).select_for_date("2023-01-03", ALL)
    assert [(a.level, a.word) for a in picks] == [
        ("beginner", "teach"), ("intermediate", "concept"), ("advanced", "ameliorate"),
    ]
    assert all(a.ymd == "2023-01-03" and not a.relaxed_constraint for a in picks)


def test_levels_with_zero_count_are_skipped():
    picks = DailyWordSelector(pools_of(3)).select_for_date("2023-01-03", {"beginner": 1})
    assert [a.level for a in picks] == ["beginner"]


def select_days(selector, days, counts=ALL):
    return {ymd: selector.select_for_date(ymd, counts) for ymd in days}


def test_no_repeat_within_lookback():
    lookback = 5
    days = date_range("2023-01-01", 40)
    picked = select_days(DailyWordSelector(pools_of(12), lookback_days=lookback), days)

    by_level = {}
    for ymd, assignments in picked.items():
        for a in assignments:
            assert not a.relaxed_constraint
            by_level.setdefault(a.level, []).append((parse_ymd(ymd), a.word_id))
    for rows in by_level.values():
        for (d1, w1), (d2, w2) in combinations(rows, 2):
            if abs((d2 - d1).days) <= lookback:
                assert w1 != w2


def test_relaxes_when_everything_was_used_recently():
    pools = {"beginner": [Candidate(1, "teach", "verb", "beginner"), Candidate(2, "learn", "verb", "beginner")]}
    history = {"2023-01-01": {1}, "2023-01-02": {2}}
    selector = DailyWordSelector(pools, history=history, lookback_days=30)

    [pick] = selector.select_for_date("2023-01-03", {"beginner": 1})
    assert pick.relaxed_constraint
    # the word whose last use is furthest back
    assert pick.word == "teach"


def test_later_dates_exclude_too():
    pools = {"beginner": [Candidate(i, f"word{i}", "noun", "beginner") for i in range(10)]}
    selector = DailyWordSelector(pools, lookback_days=90)
    order = ["2023-01-10"] + date_range("2023-01-01", 9)
    picks = [selector.select_for_date(ymd, {"beginner": 1})[0] for ymd in order]

    assert len({a.word_id for a in picks}) == 10
    assert not any(a.relaxed_constraint for a in picks)


def test_future_assignment_forces_relaxation():
    pools = {"beginner": [Candidate(1, "teach", "verb", "beginner")]}
    selector = DailyWordSelector(pools, history={"2023-02-01": {1}}, lookback_days=90)
    [pick] = selector.select_for_date("2023-01-03", {"beginner": 1})
    assert pick.relaxed_constraint


def test_excluded_words_are_avoided():
    pools = {"beginner": [Candidate(1, "teach", "verb", "beginner"), Candidate(2, "learn", "verb", "beginner")]}
    selector = DailyWordSelector(pools)
    [first] = selector.select_for_date("2023-01-03", {"beginner": 1})
    [again] = selector.select_for_date("2023-01-03", {"beginner": 1}, exclude={first.word_id})
    assert again.word_id != first.word_id
    assert not again.relaxed_constraint


def test_excluded_word_reused_when_nothing_else_is_left():
    pools = {"beginner": [Candidate(1, "teach", "verb", "beginner")]}
    [pick] = DailyWordSelector(pools).select_for_date("2023-01-03", {"beginner": 1}, exclude={1})
    assert pick.word == "teach"
    assert pick.relaxed_constraint


def test_history_outside_lookback_does_not_exclude():
    pools = {"beginner": [Candidate(1, "teach", "verb", "beginner")]}
    selector = DailyWordSelector(pools, history={"2022-01-01": {1}}, lookback_days=90)
    [pick] = selector.select_for_date("2023-01-03", {"beginner": 1})
    assert not pick.relaxed_constraint


def test_pos_balancing_across_levels():
    pools = {
        "beginner": [Candidate(1, "apple", "noun", "beginner")],
        "intermediate": [Candidate(2, "concept", "noun", "intermediate"), Candidate(3, "ponder", "verb", "intermediate")],
    }
    selector = DailyWordSelector(pools, pos_target_distribution={"noun": 0.5, "verb": 0.5})
    picks = selector.select_for_date("2023-01-03", {"beginner": 1, "intermediate": 1})
    assert [a.word for a in picks] == ["apple", "ponder"]


def test_same_inputs_same_picks():
    days = date_range("2023-03-01", 10)
    a = select_days(DailyWordSelector(pools_of(20)), days)
    b = select_days(DailyWordSelector(pools_of(20)), days)
    assert a == b


def test_empty_pool_gives_no_assignment():
    assert DailyWordSelector({"beginner": []}).select_for_date("2023-01-03", {"beginner": 1}) == []


def test_dates():
    assert shift("2023-01-01", -1) == "2022-12-31"
    assert date_range("2023-02-27", 3) == ["2023-02-27", "2023-02-28", "2023-03-01"]
    assert tiebreak("2023-01-01", "beginner", "a") != tiebreak("2023-01-02", "beginner", "a")
    with pytest.raises(ValueError):
        parse_ymd("2023-13-01")
