from datetime import date, datetime, time, timedelta, timezone

from medpos.core.constants import TRADING_DAY_END_HOUR, TRADING_DAY_START_HOUR


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today() -> date:
    """Current calendar date in UTC; every expiry and overdue check uses it."""
    return utcnow().date()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


def trading_day_window(day: date) -> tuple[datetime, datetime]:
    """Return the [start, end) window of the store's trading day for ``day``."""
    start = datetime.combine(day, time(hour=TRADING_DAY_START_HOUR), tzinfo=timezone.utc)
    end = datetime.combine(
        day + timedelta(days=1),
        time(hour=TRADING_DAY_END_HOUR),
        tzinfo=timezone.utc,
    )
    return start, end


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
