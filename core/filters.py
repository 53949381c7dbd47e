"""
Date windows and period shortcuts.

Every function that needs "today" takes it as an argument so that the
windows are reproducible; callers pass ``None`` to use the current date.
"""
import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

# Start date used for the "all" period shortcut
ALL_TIME_START = date(1900, 1, 1)

# Start date used for the "all" timeframe on report pages
ALL_TIMEFRAME_START = date(2000, 1, 1)

DEFAULT_PERIOD = "30d"
DEFAULT_TIMEFRAME = "12m"
DEFAULT_DAY_WINDOW = 365

PERIOD_LABELS = {
    "7d": "7 days",
    "30d": "30 days",
    "90d": "90 days",
    "1y": "1 year",
    "all": "All time",
}

_PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}

# DATE_TRUNC unit used for the revenue trend of each period
PERIOD_GRANULARITY = {
    "7d": "day",
    "30d": "week",
    "90d": "week",
    "1y": "month",
    "all": "quarter",
}

TIMEFRAME_ALIASES = {
    "last-7-days": "7d",
    "last-30-days": "30d",
    "last-90-days": "90d",
    "last-12-months": "12m",
}

TIMEFRAMES = (
    "7d", "30d", "90d", "6m", "12m", "ytd", "mtd", "last-month", "all", "custom",
)

_TIMEFRAME_LABELS = {
    "7d": "Last 7 days",
    "30d": "Last 30 days",
    "90d": "Last 90 days",
    "6m": "Last 6 months",
    "12m": "Last 12 months",
    "ytd": "Year to date",
    "mtd": "Month to date",
    "all": "All time",
}

_DAY_WINDOW_RE = re.compile(r"^(\d+)d$")


@dataclass
class DateRange:
    """A date window plus the equally long window right before it."""
    start: date
    end: date
    compare_start: Optional[date] = None
    compare_end: Optional[date] = None

    @property
    def start_str(self) -> str:
        """Start date as YYYY-MM-DD string."""
        return self.start.strftime("%Y-%m-%d")

    @property
    def end_str(self) -> str:
        """End date as YYYY-MM-DD string."""
        return self.end.strftime("%Y-%m-%d")

    @property
    def has_comparison(self) -> bool:
        return self.compare_start is not None and self.compare_end is not None

    @property
    def days(self) -> int:
        """Inclusive length of the window in days."""
        return (self.end - self.start).days + 1

    def as_tuple(self) -> Tuple[date, date]:
        """Return as (start, end) tuple of dates."""
        return (self.start, self.end)

    def comparison(self) -> "DateRange":
        """The comparison window as its own range."""
        return DateRange(self.compare_start, self.compare_end)


@dataclass
class TimeframeRange:
    """Window selected on report pages, with the text shown next to it."""
    start: date
    end: date
    display_text: str


def shift_years(value: date, years: int) -> date:
    """Move a date by whole years, clamping Feb 29 to Feb 28."""
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return value.replace(year=value.year + years, day=28)


def shift_months(value: date, months: int) -> date:
    """Move a date by calendar months, clamping to the last day of the month."""
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def get_date_range(
    period: Optional[str] = DEFAULT_PERIOD,
    include_comparison: bool = True,
    today: Optional[date] = None,
) -> DateRange:
    """
    Resolve a period shortcut into a date window.

    Args:
        period: One of 7d, 30d, 90d, 1y, all (unknown values act as 30d)
        include_comparison: Also compute the preceding window of equal length
        today: Reference date (default: today)

    Returns:
        DateRange ending on ``today``

    Examples:
        >>> get_date_range("7d", today=date(2026, 1, 15))
        DateRange(start=date(2026, 1, 8), end=date(2026, 1, 15),
                  compare_start=date(2025, 12, 31), compare_end=date(2026, 1, 7))
    """
    today = today or date.today()

    if period == "all":
        return DateRange(ALL_TIME_START, today)

    if period == "1y":
        start = shift_years(today, -1)
    else:
        start = today - timedelta(days=_PERIOD_DAYS.get(period, 30))

    result = DateRange(start, today)
    if include_comparison:
        length = (today - start).days + 1
        result.compare_end = start - timedelta(days=1)
        result.compare_start = result.compare_end - timedelta(days=length - 1)
    return result


def get_period_label(period: str) -> str:
    """
    Get human-readable label for period.

    Args:
        period: Period shortcut

    Returns:
        Human-readable label, or the value itself when it is not a shortcut
    """
    return PERIOD_LABELS.get(period, period)


def get_period_options() -> List[Dict[str, str]]:
    """Period choices offered by the dashboard selector."""
    return [{"value": value, "label": label} for value, label in PERIOD_LABELS.items()]


def granularity_for_period(period: Optional[str]) -> str:
    return PERIOD_GRANULARITY.get(period, "week")


def _format_display(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def get_timeframe_range(
    timeframe: Optional[str] = DEFAULT_TIMEFRAME,
    start: Optional[date] = None,
    end: Optional[date] = None,
    today: Optional[date] = None,
) -> TimeframeRange:
    """
    Resolve a report timeframe into a window and its display text.

    ``custom`` uses ``start`` and ``end`` as given; unknown timeframes, and
    ``custom`` without both dates, fall back to the last 12 months.
    """
    today = today or date.today()
    timeframe = TIMEFRAME_ALIASES.get(timeframe, timeframe)

    if timeframe == "custom" and start and end:
        return TimeframeRange(start, end, f"{_format_display(start)} to {_format_display(end)}")

    if timeframe in _PERIOD_DAYS:
        window_start = today - timedelta(days=_PERIOD_DAYS[timeframe])
    elif timeframe == "6m":
        window_start = shift_months(today, -6)
    elif timeframe == "ytd":
        window_start = date(today.year, 1, 1)
    elif timeframe == "mtd":
        window_start = today.replace(day=1)
    elif timeframe == "last-month":
        last_of_previous = today.replace(day=1) - timedelta(days=1)
        first_of_previous = last_of_previous.replace(day=1)
        return TimeframeRange(
            first_of_previous,
            last_of_previous,
            f"{_format_display(first_of_previous)} to {_format_display(last_of_previous)}",
        )
    elif timeframe == "all":
        window_start = ALL_TIMEFRAME_START
    else:
        timeframe = DEFAULT_TIMEFRAME
        window_start = shift_years(today, -1)

    return TimeframeRange(window_start, today, _TIMEFRAME_LABELS[timeframe])


def get_previous_range(start: date, end: date) -> Tuple[date, date]:
    """The window of the same duration ending the day before ``start``."""
    duration = end - start
    previous_end = start - timedelta(days=1)
    return previous_end - duration, previous_end


def parse_day_window(value: Optional[str]) -> int:
    """Number of days in an ``Nd`` range string (365 when missing or malformed)."""
    match = _DAY_WINDOW_RE.match(value or "")
    if not match or int(match.group(1)) <= 0:
        return DEFAULT_DAY_WINDOW
    return int(match.group(1))


def get_day_window(
    date_range: Optional[str] = None,
    today: Optional[date] = None,
) -> Tuple[int, date, date]:
    """
    Current and previous N-day windows used by the transactional reports.

    Returns:
        (days, current_start, previous_start) where the current window is
        [current_start, today] and the previous one is
        [previous_start, current_start)
    """
    today = today or date.today()
    days = parse_day_window(date_range)
    current_start = today - timedelta(days=days)
    return days, current_start, current_start - timedelta(days=days)


def trailing_years(count: int = 4, today: Optional[date] = None) -> List[Tuple[date, date]]:
    """
    Consecutive one-year windows ending on ``today``, newest first.

    Window i ends ``i`` years before today and starts the day after the
    same date one year earlier.
    """
    today = today or date.today()
    windows = []
    for i in range(count):
        period_end = shift_years(today, -i)
        period_start = shift_years(period_end, -1) + timedelta(days=1)
        windows.append((period_start, period_end))
    return windows


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return datetime.strptime(value[:10], "%Y-%m-%d").date()
