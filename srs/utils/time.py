from datetime import date, datetime, time, timezone

UTC = timezone.utc


def to_utc(dt: datetime) -> datetime:
    # Naive datetimes are taken to be UTC already
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def utc_day(dt: datetime) -> date:
    return to_utc(dt).date()


def start_of_day_utc(dt: datetime) -> datetime:
    return datetime.combine(utc_day(dt), time.min, tzinfo=UTC)


def day_string(day: date) -> str:
    return day.isoformat()


