"""Date-range resolution for calendar views.

Each view shows one calendar unit around the selected date. The range
returned here is what the events endpoint is queried with, so both ends are
inclusive: ``end`` is the last representable instant of the unit.

Weeks start on Sunday. This is fixed, not a setting.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta


class CalendarView(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    AGENDA = "agenda"


class UnsupportedViewError(ValueError):
    """Raised for a view value that is not a CalendarView."""


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """True if the closed interval [start, end] shares any instant with this range."""
        return start <= self.end and end >= self.start


def as_view(view: CalendarView | str) -> CalendarView:
    """Coerce a view name to CalendarView, rejecting anything unknown."""
    if isinstance(view, CalendarView):
        return view
    try:
        return CalendarView(view)
    except ValueError:
        raise UnsupportedViewError(f"Unsupported view: {view!r}") from None


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)


def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.max, tzinfo=moment.tzinfo)


def start_of_week(moment: datetime) -> datetime:
    # weekday(): Monday=0 .. Sunday=6; shift so Sunday=0
    days_since_sunday = (moment.weekday() + 1) % 7
    return start_of_day(moment - timedelta(days=days_since_sunday))


def add_months(moment, months: int):
    """Calendar month arithmetic, clamping to the last day of short months."""
    return moment + relativedelta(months=months)


def day_window(day: date | datetime, tzinfo=None) -> DateRange:
    """The 00:00:00 to 23:59:59 window of a calendar day, used by the day-view filter."""
    if isinstance(day, datetime):
        tzinfo = day.tzinfo
        day = day.date()
    return DateRange(
        start=datetime.combine(day, time(0, 0, 0), tzinfo=tzinfo),
        end=datetime.combine(day, time(23, 59, 59), tzinfo=tzinfo),
    )


def resolve_date_range(reference: datetime, view: CalendarView | str) -> DateRange:
    """
    Compute the range of the calendar unit containing ``reference``.

    - day: start of day to end of day
    - week: Sunday 00:00 to Saturday 23:59:59.999999
    - month and agenda: first to last instant of the month
    - year: first to last instant of the year

    Raises UnsupportedViewError for any other view value.
    """
    view = as_view(view)

    if view is CalendarView.DAY:
        start = start_of_day(reference)
        end = end_of_day(reference)
    elif view is CalendarView.WEEK:
        start = start_of_week(reference)
        end = end_of_day(start + timedelta(days=6))
    elif view in (CalendarView.MONTH, CalendarView.AGENDA):
        start = start_of_day(reference.replace(day=1))
        end = end_of_day(add_months(start, 1) - timedelta(days=1))
    elif view is CalendarView.YEAR:
        start = start_of_day(reference.replace(month=1, day=1))
        end = end_of_day(reference.replace(month=12, day=31))
    else:  # pragma: no cover - as_view() already rejected it
        raise UnsupportedViewError(f"Unsupported view: {view!r}")

    return DateRange(start=start, end=end)
