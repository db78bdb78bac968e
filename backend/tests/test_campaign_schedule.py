"""Tests for next-run computation and schedule bookkeeping."""

from datetime import date, datetime, time
from types import SimpleNamespace

import pytest

from app.errors import CampaignConfigError
from app.services.campaign_schedule import (
    add_months,
    advance_base,
    is_due,
    local_to_utc,
    next_execution_after,
    next_run,
    record_execution,
    reschedule,
    sunday_weekday,
    upcoming_runs,
    utc_to_local,
)

NINE = time(9, 0)


def campaign(**overrides):
    fields = dict(
        id="c1",
        status="active",
        frequency="weekly",
        schedule_time=NINE,
        schedule_day=1,  # Monday
        timezone="UTC",
        start_date=date(2025, 1, 6),
        end_date=None,
        max_articles=None,
        articles_generated=0,
        last_execution=None,
        next_execution=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


# ── next_run ──────────────────────────────────────────────────────────────


def test_sunday_based_weekday():
    assert sunday_weekday(date(2025, 1, 5)) == 0  # Sunday
    assert sunday_weekday(date(2025, 1, 11)) == 6  # Saturday


def test_weekly_on_schedule_day_returns_same_date():
    assert next_run(date(2025, 1, 6), "weekly", NINE, 1) == datetime(2025, 1, 6, 9, 0)


def test_weekly_rolls_forward_to_schedule_day():
    assert next_run(date(2025, 1, 6), "weekly", NINE, 5) == datetime(2025, 1, 10, 9, 0)
    assert next_run(date(2025, 1, 6), "bi-weekly", NINE, 0) == datetime(2025, 1, 12, 9, 0)


def test_daily_uses_base_date():
    assert next_run(datetime(2025, 3, 2, 18, 30), "daily", time(7, 15)) == datetime(2025, 3, 2, 7, 15)


def test_monthly_day_already_passed_rolls_to_next_month():
    assert next_run(date(2025, 1, 20), "monthly", NINE, 15) == datetime(2025, 2, 15, 9, 0)


def test_monthly_day_not_yet_reached():
    assert next_run(date(2025, 1, 10), "monthly", NINE, 15) == datetime(2025, 1, 15, 9, 0)


def test_monthly_rolls_over_year_end():
    assert next_run(date(2025, 12, 20), "monthly", NINE, 15) == datetime(2026, 1, 15, 9, 0)


def test_missing_schedule_time_defaults_to_nine():
    assert next_run(date(2025, 1, 6), "daily", None) == datetime(2025, 1, 6, 9, 0)


@pytest.mark.parametrize("frequency, day", [
    ("monthly", 0),
    ("monthly", 29),
    ("monthly", 31),
    ("weekly", 7),
    ("bi-weekly", -1),
])
def test_out_of_range_schedule_day_is_config_error(frequency, day):
    with pytest.raises(CampaignConfigError):
        next_run(date(2025, 1, 1), frequency, NINE, day)


def test_add_months_clamps_day():
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2025, 11, 15), 2) == date(2026, 1, 15)


def test_advance_base():
    base = date(2025, 1, 31)
    assert advance_base(base, "daily") == date(2025, 2, 1)
    assert advance_base(base, "weekly") == date(2025, 2, 7)
    assert advance_base(base, "bi-weekly") == date(2025, 2, 14)
    assert advance_base(base, "monthly") == date(2025, 2, 1)


# ── Time zones ────────────────────────────────────────────────────────────


def test_local_time_conversion_follows_dst():
    assert local_to_utc(datetime(2025, 1, 6, 9, 0), "Europe/Paris") == datetime(2025, 1, 6, 8, 0)
    assert local_to_utc(datetime(2025, 7, 7, 9, 0), "Europe/Paris") == datetime(2025, 7, 7, 7, 0)
    assert utc_to_local(datetime(2025, 7, 7, 7, 0), "Europe/Paris") == datetime(2025, 7, 7, 9, 0)


def test_unknown_timezone_falls_back_to_utc():
    assert local_to_utc(datetime(2025, 1, 6, 9, 0), "Mars/Olympus") == datetime(2025, 1, 6, 9, 0)


# ── Campaign-level bookkeeping ────────────────────────────────────────────


def test_next_execution_after_is_strictly_later():
    c = campaign()
    ran_at = datetime(2025, 1, 6, 9, 0)
    assert next_execution_after(c, ran_at) == datetime(2025, 1, 13, 9, 0)

    c = campaign(frequency="bi-weekly")
    assert next_execution_after(c, ran_at) == datetime(2025, 1, 20, 9, 0)


def test_next_execution_after_in_local_timezone():
    c = campaign(timezone="Europe/Paris")
    assert next_execution_after(c, datetime(2025, 1, 6, 8, 0)) == datetime(2025, 1, 13, 8, 0)


def test_monthly_next_execution_after_manual_run():
    c = campaign(frequency="monthly", schedule_day=15)
    assert next_execution_after(c, datetime(2025, 1, 20, 14, 0)) == datetime(2025, 2, 15, 9, 0)
    assert next_execution_after(c, datetime(2025, 1, 15, 9, 0)) == datetime(2025, 2, 15, 9, 0)


def test_reschedule_from_today():
    c = campaign()
    assert reschedule(c, datetime(2025, 1, 8, 12, 0)) == datetime(2025, 1, 13, 9, 0)
    assert c.next_execution == datetime(2025, 1, 13, 9, 0)


def test_reschedule_waits_for_future_start_date():
    c = campaign(start_date=date(2025, 2, 1))
    assert reschedule(c, datetime(2025, 1, 8, 12, 0)) == datetime(2025, 2, 3, 9, 0)


def test_reschedule_never_before_last_execution():
    c = campaign(frequency="daily", schedule_day=None, last_execution=datetime(2025, 1, 8, 9, 0))
    assert reschedule(c, datetime(2025, 1, 8, 10, 0)) == datetime(2025, 1, 9, 9, 0)


def test_is_due():
    c = campaign(next_execution=datetime(2025, 1, 6, 9, 0))
    assert is_due(c, datetime(2025, 1, 6, 9, 0))
    assert not is_due(c, datetime(2025, 1, 6, 8, 59))

    stopped = campaign(status="stopped", next_execution=datetime(2025, 1, 6, 9, 0))
    assert not is_due(stopped, datetime(2025, 2, 1))


def test_record_execution_advances_schedule():
    c = campaign(next_execution=datetime(2025, 1, 6, 9, 0))
    completed = record_execution(c, datetime(2025, 1, 6, 9, 1))
    assert completed is False
    assert c.last_execution == datetime(2025, 1, 6, 9, 1)
    assert c.next_execution == datetime(2025, 1, 13, 9, 0)
    assert c.next_execution > c.last_execution


def test_record_execution_completes_after_end_date():
    c = campaign(end_date=date(2025, 1, 10))
    assert record_execution(c, datetime(2025, 1, 6, 9, 0)) is True
    assert c.status == "completed"


def test_record_execution_completes_at_article_cap():
    c = campaign(max_articles=3, articles_generated=3)
    assert record_execution(c, datetime(2025, 1, 6, 9, 0)) is True
    assert c.status == "completed"


def test_record_execution_keeps_paused_status():
    c = campaign(status="paused", end_date=date(2025, 1, 10))
    assert record_execution(c, datetime(2025, 1, 6, 9, 0)) is False
    assert c.status == "paused"


def test_upcoming_runs_respects_end_date():
    c = campaign(end_date=date(2025, 1, 15))
    assert upcoming_runs(c, datetime(2025, 1, 1), count=5) == [
        datetime(2025, 1, 6, 9, 0),
        datetime(2025, 1, 13, 9, 0),
    ]


def test_upcoming_runs_from_next_execution():
    c = campaign(next_execution=datetime(2025, 1, 13, 9, 0))
    assert upcoming_runs(c, datetime(2025, 1, 8), count=3) == [
        datetime(2025, 1, 13, 9, 0),
        datetime(2025, 1, 20, 9, 0),
        datetime(2025, 1, 27, 9, 0),
    ]
