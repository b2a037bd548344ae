"""Arranging filtered events for display.

Events are first split by whether they start and end on the same calendar
day. Single-day events are then placed on their start day; multi-day events
are placed on every calendar day from their start day to their end day,
inclusive, for the month grid and the agenda.

The per-day walk over a multi-day event is always clipped to the dates on
screen (the month grid or the agenda month), so a very long event costs no
more than the visible days. Span length itself is bounded when events are
written (see ``labchat.calendar.service``).
"""
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from labchat.calendar.ranges import add_months
from labchat.calendar.views import EventView

MAX_VISIBLE_EVENTS = 3


@dataclass(frozen=True)
class PartitionedEvents:
    single_day: list[EventView]
    multi_day: list[EventView]


@dataclass(frozen=True)
class CalendarCell:
    """One square of the month grid."""
    day: int
    current_month: bool
    date: date


@dataclass
class DayBucket:
    events: list[EventView] = field(default_factory=list)
    multi_day_events: list[EventView] = field(default_factory=list)

    def all_events(self) -> list[EventView]:
        """Multi-day events first, then single-day, each in fetch order."""
        return self.multi_day_events + self.events


@dataclass(frozen=True)
class CellView:
    """What a month-grid cell renders: three slots and a "+N more" count."""
    date: date
    slots: tuple[EventView | None, ...]
    overflow: int


@dataclass(frozen=True)
class AgendaDay:
    date: date
    events: list[EventView]
    multi_day_events: list[EventView]


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def is_multi_day(event: EventView) -> bool:
    """Calendar-day comparison: 23:00 to 01:00 the next day is multi-day."""
    return event.start_date.date() != event.end_date.date()


def partition_events(events: Iterable[EventView]) -> PartitionedEvents:
    single_day, multi_day = [], []
    for event in events:
        (multi_day if is_multi_day(event) else single_day).append(event)
    return PartitionedEvents(single_day=single_day, multi_day=multi_day)


def iter_event_days(event: EventView, first: date | None = None, last: date | None = None):
    """Calendar days covered by the event, optionally clipped to [first, last]."""
    day = event.start_date.date()
    end = event.end_date.date()
    if first is not None and day < first:
        day = first
    if last is not None and end > last:
        end = last
    while day <= end:
        yield day
        day += timedelta(days=1)


def event_day_index(event: EventView, day: date | datetime) -> tuple[int, int]:
    """(current day, total days) of a multi-day event, e.g. (2, 4) for "Day 2 of 4"."""
    start = event.start_date.date()
    total = (event.end_date.date() - start).days + 1
    return (_as_date(day) - start).days + 1, total


def month_cells(reference: date | datetime) -> list[CalendarCell]:
    """
    Cells of the month grid containing ``reference``.

    Weeks start on Sunday. Leading days of the previous month and trailing
    days of the next month pad the grid to whole weeks.
    """
    first = _as_date(reference).replace(day=1)
    last = add_months(first, 1) - timedelta(days=1)

    leading = (first.weekday() + 1) % 7
    grid_start = first - timedelta(days=leading)
    total = leading + last.day
    trailing = (7 - total % 7) % 7

    cells = []
    for offset in range(total + trailing):
        day = grid_start + timedelta(days=offset)
        cells.append(CalendarCell(day=day.day, current_month=day.month == first.month, date=day))
    return cells


def bucket_days(partitioned: PartitionedEvents, days: Sequence[date]) -> dict[date, DayBucket]:
    """
    Map every day in ``days`` to its single-day and multi-day events.

    Single-day events land on their start day. Multi-day events land on every
    listed day between their start day and end day inclusive. Days without
    events still get an empty bucket.
    """
    buckets = {day: DayBucket() for day in days}
    if not buckets:
        return buckets
    first, last = min(buckets), max(buckets)

    for event in partitioned.single_day:
        bucket = buckets.get(event.start_date.date())
        if bucket is not None:
            bucket.events.append(event)

    for event in partitioned.multi_day:
        for day in iter_event_days(event, first, last):
            bucket = buckets.get(day)
            if bucket is not None:
                bucket.multi_day_events.append(event)

    return buckets


def bucket_month_days(partitioned: PartitionedEvents, reference: date | datetime) -> dict[date, DayBucket]:
    """Day buckets for every visible cell of the month grid around ``reference``."""
    return bucket_days(partitioned, [cell.date for cell in month_cells(reference)])


def assign_month_slots(
    partitioned: PartitionedEvents,
    cells: Sequence[CalendarCell],
    max_slots: int = MAX_VISIBLE_EVENTS,
) -> dict[int, int]:
    """
    Give events a display slot (0, 1 or 2) in the month grid.

    First come, first slotted: multi-day events are placed before single-day
    ones, each group in fetch order. An event takes the lowest slot that is
    free on every visible day it covers, so a multi-day bar keeps one row
    across the week. Events that find no free slot are left out of the
    mapping and only count towards "+N more".

    Returns a mapping of event id to slot.
    """
    if not cells:
        return {}
    first, last = cells[0].date, cells[-1].date
    taken: dict[date, set[int]] = {}
    slots: dict[int, int] = {}

    for event in partitioned.multi_day + partitioned.single_day:
        days = list(iter_event_days(event, first, last))
        if not days:
            continue
        for slot in range(max_slots):
            if all(slot not in taken.get(day, ()) for day in days):
                slots[event.id] = slot
                for day in days:
                    taken.setdefault(day, set()).add(slot)
                break

    return slots


def month_cell_view(
    day: date,
    bucket: DayBucket,
    slots: dict[int, int],
    max_visible: int = MAX_VISIBLE_EVENTS,
) -> CellView:
    cell_events = bucket.all_events()
    visible: list[EventView | None] = [None] * max_visible
    for event in cell_events:
        slot = slots.get(event.id)
        if slot is not None and slot < max_visible and visible[slot] is None:
            visible[slot] = event
    shown = sum(1 for event in visible if event is not None)
    return CellView(date=day, slots=tuple(visible), overflow=len(cell_events) - shown)


def month_grid(partitioned: PartitionedEvents, reference: date | datetime) -> list[CellView]:
    """Cell views for the whole month grid, in display order."""
    cells = month_cells(reference)
    buckets = bucket_days(partitioned, [cell.date for cell in cells])
    slots = assign_month_slots(partitioned, cells)
    return [month_cell_view(cell.date, buckets[cell.date], slots) for cell in cells]


def group_agenda(partitioned: PartitionedEvents, reference: date | datetime) -> list[AgendaDay]:
    """
    Agenda days for the month containing ``reference``.

    Only days with at least one event are listed, sorted by date.
    """
    first = _as_date(reference).replace(day=1)
    last = add_months(first, 1) - timedelta(days=1)
    month_days = [first + timedelta(days=offset) for offset in range((last - first).days + 1)]

    buckets = bucket_days(partitioned, month_days)
    return [
        AgendaDay(date=day, events=bucket.events, multi_day_events=bucket.multi_day_events)
        for day, bucket in sorted(buckets.items())
        if bucket.events or bucket.multi_day_events
    ]
