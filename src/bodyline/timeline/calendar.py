"""Calendar windows and stable bucket ids.

All windows are half-open ``[start, end)`` in local calendar days.  Ids
depend only on the calendar, so the same week, month or year always gets
the same key no matter how often the timeline is rebuilt.
"""

from datetime import date, datetime, time, timedelta

WEEK = timedelta(days=7)


def week_start_for(day: date, week_start: int = 0) -> date:
    """First day of the week containing *day* (``week_start`` 0 = Monday)."""
    return day - timedelta(days=(day.weekday() - week_start) % 7)


def week_window(day: date, week_start: int = 0) -> tuple[date, date]:
    start = week_start_for(day, week_start)
    return start, start + WEEK


def week_anchor(start: date) -> date:
    """The window's fourth day: it decides the ISO week id and parent month."""
    return start + timedelta(days=3)


def week_id(start: date) -> str:
    """``YYYY-Www`` of the ISO week holding the window's fourth day.

    Consecutive windows have fourth days exactly 7 days apart, so each lands
    in a different ISO week and ids stay unique and ordered whatever weekday
    weeks start on.
    """
    iso = week_anchor(start).isocalendar()
    return f"{iso.year}-W{iso.week:02d}"


def month_start(day: date) -> date:
    return day.replace(day=1)


def add_months(first_of_month: date, months: int) -> date:
    index = first_of_month.year * 12 + (first_of_month.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_window(day: date) -> tuple[date, date]:
    start = month_start(day)
    return start, add_months(start, 1)


def month_id(start: date) -> str:
    return f"{start.year:04d}-{start.month:02d}"


def month_range(first: date, last: date) -> list[date]:
    """First days of every month from *first*'s month to *last*'s month."""
    months = []
    current = month_start(first)
    while current <= last:
        months.append(current)
        current = add_months(current, 1)
    return months


def year_window(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year + 1, 1, 1)


def year_id(year: int) -> str:
    return f"{year:04d}"


def midpoint(start: date, end: date) -> datetime:
    """Exact midpoint of ``[start, end)`` as a naive local datetime."""
    begin = datetime.combine(start, time())
    return begin + (datetime.combine(end, time()) - begin) / 2
