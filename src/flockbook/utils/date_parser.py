"""Date parsing utilities."""

from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from flockbook.domain.entities import ReportPeriod


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "15 January 2024", etc.
    - Relative dates: "today", "yesterday", "last monday", "this month".

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    days = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
        elif period == "week":
            return today - timedelta(days=today.weekday() + 7)
        elif period in days:
            days_ago = (today.weekday() - days.index(period)) % 7
            if days_ago == 0:
                days_ago = 7
            return today - timedelta(days=days_ago)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
        elif period == "week":
            return today - timedelta(days=today.weekday())

    try:
        dt = date_parser.parse(date_str, dayfirst=False)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def get_period_range(
    period: ReportPeriod, today: Optional[date] = None
) -> tuple[Optional[date], Optional[date]]:
    """Get start and end dates for a report period.

    WEEKLY is the trailing seven days, MONTHLY and YEARLY are the calendar
    month and year of ``today``, ALL is unbounded.

    Args:
        period: Report period
        today: Reference date, defaults to the current date

    Returns:
        Tuple of (start_date, end_date); both None for ALL
    """
    today = today or date.today()

    if period == ReportPeriod.DAILY:
        return (today, today)
    elif period == ReportPeriod.WEEKLY:
        return (today - timedelta(days=7), today)
    elif period == ReportPeriod.MONTHLY:
        start_date = today.replace(day=1)
        end_date = start_date + relativedelta(months=1) - timedelta(days=1)
        return (start_date, end_date)
    elif period == ReportPeriod.YEARLY:
        return (today.replace(month=1, day=1), today.replace(month=12, day=31))
    elif period == ReportPeriod.ALL:
        return (None, None)
    raise ValueError(f"Unknown period: '{period}'")


def in_date_range(value: date, start_date: Optional[date], end_date: Optional[date]) -> bool:
    """True when ``value`` lies within the inclusive range."""
    if start_date is not None and value < start_date:
        return False
    if end_date is not None and value > end_date:
        return False
    return True
