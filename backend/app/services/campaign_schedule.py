"""
Campaign scheduling: next-run computation and due checks.

All timestamps stored on campaigns are naive UTC. Schedules are expressed in
the campaign's local time zone (`schedule_time`, `schedule_day`), so local
dates are converted at the boundaries.

Weekdays for weekly/bi-weekly schedules use 0=Sunday..6=Saturday.
"""
import calendar
import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..errors import CampaignConfigError
from ..models.campaign import CampaignStatus, Frequency
from .campaign_state import CampaignEvent, apply

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULE_TIME = time(9, 0)
MONTHLY_MAX_DAY = 28


def sunday_weekday(day: date) -> int:
    """Weekday with 0=Sunday..6=Saturday."""
    return (day.weekday() + 1) % 7


def add_months(day: date, months: int) -> date:
    years, month_index = divmod(day.month - 1 + months, 12)
    year = day.year + years
    month = month_index + 1
    return day.replace(year=year, month=month, day=min(day.day, calendar.monthrange(year, month)[1]))


def validate_schedule_day(frequency: Union[Frequency, str], schedule_day: Optional[int]) -> None:
    """
    Raises:
        CampaignConfigError: If schedule_day is out of range for the frequency
    """
    frequency = Frequency(frequency)
    if schedule_day is None:
        return
    if frequency in (Frequency.WEEKLY, Frequency.BI_WEEKLY) and not 0 <= schedule_day <= 6:
        raise CampaignConfigError(
            "schedule_day must be a weekday between 0 (Sunday) and 6 (Saturday)",
            {"schedule_day": schedule_day, "frequency": frequency.value},
        )
    if frequency == Frequency.MONTHLY and not 1 <= schedule_day <= MONTHLY_MAX_DAY:
        raise CampaignConfigError(
            f"schedule_day must be a day of month between 1 and {MONTHLY_MAX_DAY}",
            {"schedule_day": schedule_day, "frequency": frequency.value},
        )


def next_run(
    base_date: Union[date, datetime],
    frequency: Union[Frequency, str],
    schedule_time: Optional[time],
    schedule_day: Optional[int] = None,
) -> datetime:
    """
    First scheduled run at or after `base_date` (naive, campaign-local).

    - daily: base date at schedule_time
    - weekly / bi-weekly: first date on schedule_day at or after base date
    - monthly: schedule_day of the base month, or of the next month when that
      day already passed
    """
    frequency = Frequency(frequency)
    validate_schedule_day(frequency, schedule_day)

    day = base_date.date() if isinstance(base_date, datetime) else base_date
    run_time = schedule_time or DEFAULT_SCHEDULE_TIME

    if frequency in (Frequency.WEEKLY, Frequency.BI_WEEKLY) and schedule_day is not None:
        while sunday_weekday(day) != schedule_day:
            day += timedelta(days=1)
    elif frequency == Frequency.MONTHLY and schedule_day is not None:
        candidate = day.replace(day=schedule_day)
        if candidate < day:
            candidate = add_months(candidate, 1)
        day = candidate

    return datetime.combine(day, run_time)


def advance_base(day: date, frequency: Union[Frequency, str]) -> date:
    """Base date one period after `day`; monthly periods start on the 1st of next month."""
    frequency = Frequency(frequency)
    if frequency == Frequency.DAILY:
        return day + timedelta(days=1)
    if frequency == Frequency.WEEKLY:
        return day + timedelta(days=7)
    if frequency == Frequency.BI_WEEKLY:
        return day + timedelta(days=14)
    return add_months(day.replace(day=1), 1)


# ── Time zones ────────────────────────────────────────────────────────────


def get_zone(name: Optional[str]) -> tzinfo:
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{name}', using UTC")
        return timezone.utc


def local_to_utc(local_dt: datetime, tz_name: Optional[str]) -> datetime:
    aware = local_dt.replace(tzinfo=get_zone(tz_name))
    return aware.astimezone(timezone.utc).replace(tzinfo=None)


def utc_to_local(utc_dt: datetime, tz_name: Optional[str]) -> datetime:
    aware = utc_dt.replace(tzinfo=timezone.utc)
    return aware.astimezone(get_zone(tz_name)).replace(tzinfo=None)


# ── Campaign-level operations ─────────────────────────────────────────────


def _run_at(campaign, base: date) -> datetime:
    local = next_run(base, campaign.frequency, campaign.schedule_time, campaign.schedule_day)
    return local_to_utc(local, campaign.timezone)


def next_execution_after(campaign, ran_at: datetime) -> datetime:
    """Next run after an execution at `ran_at` (naive UTC); always later than `ran_at`."""
    base = advance_base(utc_to_local(ran_at, campaign.timezone).date(), campaign.frequency)
    candidate = _run_at(campaign, base)
    while candidate <= ran_at:
        base = advance_base(base, campaign.frequency)
        candidate = _run_at(campaign, base)
    return candidate


def reschedule(campaign, now: datetime) -> datetime:
    """
    Recompute next_execution after schedule edits, activation or resume.

    Never schedules before the start date, nor at or before the last execution.
    """
    today = utc_to_local(now, campaign.timezone).date()
    candidate = _run_at(campaign, max(campaign.start_date, today))
    if campaign.last_execution is not None:
        candidate = max(candidate, next_execution_after(campaign, campaign.last_execution))
    campaign.next_execution = candidate
    return candidate


def is_due(campaign, now: datetime) -> bool:
    return (
        campaign.status == CampaignStatus.ACTIVE.value
        and campaign.next_execution is not None
        and now >= campaign.next_execution
    )


def should_complete(campaign) -> bool:
    """End date passed before the next run, or the article cap is reached."""
    if campaign.max_articles and (campaign.articles_generated or 0) >= campaign.max_articles:
        return True
    if campaign.end_date and campaign.next_execution is not None:
        next_local = utc_to_local(campaign.next_execution, campaign.timezone)
        if next_local.date() > campaign.end_date:
            return True
    return False


def record_execution(campaign, ran_at: datetime) -> bool:
    """
    Advance the schedule after a generation attempt (success or failure).

    Returns:
        True if the campaign reached its end and was completed
    """
    campaign.last_execution = ran_at
    campaign.next_execution = next_execution_after(campaign, ran_at)

    if campaign.status == CampaignStatus.ACTIVE.value and should_complete(campaign):
        campaign.status = apply(CampaignEvent.COMPLETE, campaign.status).value
        logger.info(f"[Scheduler] Campaign {campaign.id} completed")
        return True
    return False


def upcoming_runs(campaign, now: datetime, count: int = 5) -> List[datetime]:
    """Preview of the next `count` run times (naive UTC), respecting the end date."""
    current = campaign.next_execution
    if current is None:
        today = utc_to_local(now, campaign.timezone).date()
        current = _run_at(campaign, max(campaign.start_date, today))

    runs = []
    while len(runs) < count:
        if campaign.end_date and utc_to_local(current, campaign.timezone).date() > campaign.end_date:
            break
        runs.append(current)
        current = next_execution_after(campaign, current)
    return runs
