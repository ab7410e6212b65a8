import calendar
import datetime
from typing import Optional

DATE_INTERVAL_UNITS = ("minute", "hour", "day", "week", "month", "quarter", "year")


def _add_months(moment: datetime.datetime, months: int) -> datetime.datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def relative_datetime(
    unit: str, amount: int, now: Optional[datetime.datetime] = None
) -> datetime.datetime:
    """Returns NOW shifted by AMOUNT units. Months clamp to the last day of the target month."""
    if unit not in DATE_INTERVAL_UNITS:
        raise ValueError(f"Invalid date interval unit: {unit!r}. Expected one of {DATE_INTERVAL_UNITS}.")
    now = now or datetime.datetime.now(datetime.timezone.utc)
    if unit == "minute":
        return now + datetime.timedelta(minutes=amount)
    if unit == "hour":
        return now + datetime.timedelta(hours=amount)
    if unit == "day":
        return now + datetime.timedelta(days=amount)
    if unit == "week":
        return now + datetime.timedelta(weeks=amount)
    if unit == "month":
        return _add_months(now, amount)
    if unit == "quarter":
        return _add_months(now, amount * 3)
    return _add_months(now, amount * 12)
