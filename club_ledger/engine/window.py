"""
Time-Window Filter

Selects the records whose date falls inside the calendar day, month or
year containing a reference date. Both bounds are inclusive.

Navigation only moves the reference date; it never changes which records
exist.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Union

from dateutil.relativedelta import relativedelta

from club_ledger.models.indicators import TimeWindow
from club_ledger.models.transaction import Transaction, to_local_naive


MONTH_NAMES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)
MONTH_ABBREVIATIONS = (
    "ene", "feb", "mar", "abr", "may", "jun",
    "jul", "ago", "sept", "oct", "nov", "dic",
)

_ONE_TICK = timedelta(microseconds=1)

_LENGTH = {
    TimeWindow.DAY: relativedelta(days=1),
    TimeWindow.MONTH: relativedelta(months=1),
    TimeWindow.YEAR: relativedelta(years=1),
}

# How far one navigation step moves the reference date
_STEP = {
    TimeWindow.DAY: relativedelta(days=1),
    TimeWindow.MONTH: relativedelta(months=1),
    TimeWindow.YEAR: relativedelta(months=12),
}


def as_datetime(value: Union[date, datetime]) -> datetime:
    """Promote a plain date to midnight of that day, in naive local time."""
    if isinstance(value, datetime):
        return to_local_naive(value)
    return datetime.combine(value, datetime.min.time())


def window_bounds(
    reference: Union[date, datetime],
    window: TimeWindow,
) -> tuple[datetime, datetime]:
    """
    Natural calendar bounds of the unit containing `reference`.

    Returns:
        (start, end) where start is the first instant of the unit and end
        the last microsecond of it, both naive local time.
    """
    start = as_datetime(reference).replace(hour=0, minute=0, second=0, microsecond=0)

    if window == TimeWindow.MONTH:
        start = start.replace(day=1)
    elif window == TimeWindow.YEAR:
        start = start.replace(month=1, day=1)

    return start, start + _LENGTH[window] - _ONE_TICK


def filter_window(
    records: Iterable[Transaction],
    reference: Union[date, datetime],
    window: TimeWindow,
) -> list[Transaction]:
    """Records dated within the window, in their original order."""
    start, end = window_bounds(reference, window)
    return [record for record in records if start <= record.date <= end]


def shift_reference(
    reference: datetime,
    window: TimeWindow,
    steps: int = 1,
) -> datetime:
    """
    Move the reference date by `steps` units of the active window.

    Negative steps go back in time. Month arithmetic clamps to the last
    day of the target month (31 Jan + 1 month = 28/29 Feb).
    """
    return reference + _STEP[window] * steps


def is_same_day(a: datetime, b: Union[date, datetime]) -> bool:
    return a.date() == (as_datetime(b).date() if isinstance(b, datetime) else b)


def window_label(reference: Union[date, datetime], window: TimeWindow) -> str:
    """Header label for the window, e.g. 'octubre 2026'."""
    ref = as_datetime(reference)
    if window == TimeWindow.YEAR:
        return str(ref.year)
    if window == TimeWindow.MONTH:
        return f"{MONTH_NAMES[ref.month - 1]} {ref.year}"
    return f"{ref.day} {MONTH_ABBREVIATIONS[ref.month - 1]} {ref.year}"


def sub_period(moment: datetime, window: TimeWindow) -> tuple[str, datetime]:
    """
    Trend-chart sub-period containing `moment`.

    Days within a month view, months within a year view, hours within a
    day view.

    Returns:
        (label, start_of_sub_period)
    """
    if window == TimeWindow.YEAR:
        start = moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        return MONTH_ABBREVIATIONS[moment.month - 1], start
    if window == TimeWindow.MONTH:
        start = moment.replace(hour=0, minute=0, second=0, microsecond=0)
        return f"{moment.day} {MONTH_ABBREVIATIONS[moment.month - 1]}", start
    start = moment.replace(minute=0, second=0, microsecond=0)
    return f"{moment.hour:02d}:00", start
