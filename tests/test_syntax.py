"""Tests for the agmd: annotation grammar."""

import sys
from datetime import date
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "scripts" / "lib"))

from agmd.syntax import ScheduleInterval, format_annotation, parse_annotation


class TestBareDate:
    def test_bare_date_is_single_day(self):
        interval = parse_annotation("2025-12-01")
        assert interval == ScheduleInterval(start=date(2025, 12, 1), due=date(2025, 12, 1))

    @pytest.mark.parametrize("raw", [
        "on 2025-12-01",
        "2025-12-01 sharp",
        "//2025-12-01?x=1",
        "x2025-12-01y",
    ])
    def test_bare_date_found_anywhere(self, raw):
        interval = parse_annotation(raw)
        assert interval.start == interval.due == date(2025, 12, 1)

    def test_first_bare_date_wins(self):
        interval = parse_annotation("2025-12-01 2026-01-01")
        assert interval.start == interval.due == date(2025, 12, 1)

    def test_bare_date_short_circuits_key_value(self):
        interval = parse_annotation("2025-12-01;due=2026-01-01")
        assert interval == ScheduleInterval(date(2025, 12, 1), date(2025, 12, 1))

    def test_invalid_bare_date(self):
        assert parse_annotation("2025-02-30") is None


class TestKeyValue:
    def test_start_and_due(self):
        interval = parse_annotation("start=2025-11-30;due=2025-12-20")
        assert interval.start == date(2025, 11, 30)
        assert interval.due == date(2025, 12, 20)

    def test_due_only(self):
        interval = parse_annotation("due=2025-12-30")
        assert interval.start is None
        assert interval.due == date(2025, 12, 30)

    def test_start_only(self):
        interval = parse_annotation("start=2025-11-30")
        assert interval == ScheduleInterval(start=date(2025, 11, 30), due=None)

    def test_order_does_not_matter(self):
        assert parse_annotation("due=2025-12-20;start=2025-11-30") == parse_annotation(
            "start=2025-11-30;due=2025-12-20"
        )

    def test_later_key_wins(self):
        interval = parse_annotation("due=2025-12-01;due=2025-12-31")
        assert interval.due == date(2025, 12, 31)

    def test_unknown_key_ignored(self):
        interval = parse_annotation("remind=2025-11-01;due=2025-12-01")
        assert interval == ScheduleInterval(start=None, due=date(2025, 12, 1))

    def test_invalid_month_rejects(self):
        assert parse_annotation("start=2025-13-01") is None

    def test_one_bad_component_rejects_all(self):
        assert parse_annotation("start=2025-11-30;due=soon") is None
        assert parse_annotation("start=2025-11-30;remind=2025-02-30") is None

    def test_garbage_rejects(self):
        assert parse_annotation("tomorrow") is None

    def test_empty_is_always_active(self):
        interval = parse_annotation("")
        assert interval == ScheduleInterval(None, None)
        assert interval.is_open

    def test_blank_components_skipped(self):
        assert parse_annotation("due=2025-12-01;") == ScheduleInterval(None, date(2025, 12, 1))


def test_reversed_interval_is_kept_and_empty():
    interval = parse_annotation("start=2025-12-20;due=2025-12-01")
    assert interval.start == date(2025, 12, 20)
    assert interval.is_empty


@pytest.mark.parametrize("interval, expected", [
    (ScheduleInterval(date(2025, 11, 30), date(2025, 12, 20)), "start=2025-11-30;due=2025-12-20"),
    (ScheduleInterval(None, date(2025, 12, 30)), "due=2025-12-30"),
    (ScheduleInterval(date(2025, 11, 30), None), "start=2025-11-30"),
    (ScheduleInterval(date(2025, 12, 1), date(2025, 12, 1)), "2025-12-01"),
    (ScheduleInterval(None, None), ""),
])
def test_format_annotation_reparses(interval, expected):
    assert format_annotation(interval) == expected
    assert parse_annotation(format_annotation(interval)) == interval
