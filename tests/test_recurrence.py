"""Tests for RRULE building and date matching."""

from __future__ import annotations

from datetime import date

import pytest

from lifeos.services.recurrence import build_rrule, matches_date, occurrences_between, validate_rule

ANCHOR = date(2030, 1, 1)


class TestBuildRrule:
    def test_empty_config_is_daily(self):
        assert build_rrule(None) == "FREQ=DAILY"
        assert build_rrule({}) == "FREQ=DAILY"

    def test_weekly_days_use_sunday_zero_indexing(self):
        assert build_rrule({"type": "weekly", "daysOfWeek": [3, 1]}) == "FREQ=WEEKLY;BYDAY=MO,WE"
        assert build_rrule({"type": "weekly", "daysOfWeek": [0, 6]}) == "FREQ=WEEKLY;BYDAY=SU,SA"

    def test_daily_excluding_weekends(self):
        rule = build_rrule({"type": "daily", "excludeWeekends": True})
        assert rule == "FREQ=DAILY;BYDAY=MO,TU,WE,TH,FR"

    def test_monthly_with_interval(self):
        rule = build_rrule({"type": "monthly", "daysOfMonth": [15, 1], "interval": 2})
        assert rule == "FREQ=MONTHLY;BYMONTHDAY=1,15;INTERVAL=2"

    def test_custom_is_daily_with_interval(self):
        assert build_rrule({"type": "custom", "interval": 3}) == "FREQ=DAILY;INTERVAL=3"

    @pytest.mark.parametrize(
        "config",
        [
            {"type": "yearly"},
            {"type": "weekly", "daysOfWeek": [7]},
            {"type": "monthly", "daysOfMonth": [0]},
            {"type": "daily", "interval": -1},
        ],
    )
    def test_invalid_configs_raise(self, config):
        with pytest.raises(ValueError):
            build_rrule(config)


class TestMatchesDate:
    def test_daily_matches_every_day_after_anchor(self):
        assert matches_date("FREQ=DAILY", ANCHOR, anchor=ANCHOR)
        assert matches_date("FREQ=DAILY", date(2030, 6, 17), anchor=ANCHOR)

    def test_nothing_matches_before_anchor(self):
        assert not matches_date("FREQ=DAILY", date(2029, 12, 31), anchor=ANCHOR)

    def test_weekly_byday(self):
        rule = "FREQ=WEEKLY;BYDAY=MO,WE"
        assert matches_date(rule, date(2030, 3, 4), anchor=ANCHOR)  # Monday
        assert not matches_date(rule, date(2030, 3, 5), anchor=ANCHOR)  # Tuesday
        assert matches_date(rule, date(2030, 3, 6), anchor=ANCHOR)  # Wednesday

    def test_interval_counts_from_anchor(self):
        rule = "FREQ=DAILY;INTERVAL=2"
        assert matches_date(rule, date(2030, 1, 3), anchor=ANCHOR)
        assert not matches_date(rule, date(2030, 1, 2), anchor=ANCHOR)

    def test_weekdays_only(self):
        rule = build_rrule({"type": "daily", "excludeWeekends": True})
        assert matches_date(rule, date(2030, 3, 8), anchor=ANCHOR)  # Friday
        assert not matches_date(rule, date(2030, 3, 9), anchor=ANCHOR)  # Saturday

    def test_monthly_day_missing_from_short_month(self):
        rule = "FREQ=MONTHLY;BYMONTHDAY=31"
        assert matches_date(rule, date(2030, 1, 31), anchor=ANCHOR)
        assert not matches_date(rule, date(2030, 2, 28), anchor=ANCHOR)

    def test_rrule_prefix_is_accepted(self):
        assert matches_date("RRULE:FREQ=WEEKLY;BYDAY=MO", date(2030, 3, 4), anchor=ANCHOR)

    def test_occurrences_between(self):
        days = occurrences_between("FREQ=WEEKLY;BYDAY=MO", date(2030, 3, 1), date(2030, 3, 31), anchor=ANCHOR)
        assert days == [date(2030, 3, 4), date(2030, 3, 11), date(2030, 3, 18), date(2030, 3, 25)]


class TestValidateRule:
    def test_normalizes_prefix(self):
        assert validate_rule("RRULE:FREQ=DAILY") == "FREQ=DAILY"

    @pytest.mark.parametrize("rule", ["", "FREQ=SOMETIMES", "NOT A RULE"])
    def test_rejects_unparseable(self, rule):
        with pytest.raises(ValueError):
            validate_rule(rule)
