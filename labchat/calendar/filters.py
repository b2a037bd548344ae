"""Event filter pipeline.

The calendar header offers four selectors (member, type, instrument,
status). An event is shown only if it passes every active selector. In the
day view the event must also overlap the selected day; other views rely on
the fetch already being scoped to the visible range.

Ids are compared as strings, so the selector value ``"7"`` and the stored
integer ``7`` select the same record.
"""
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime

from labchat.calendar.ranges import CalendarView, as_view, day_window
from labchat.calendar.views import EventView

ALL = "all"
NO_INSTRUMENT = "none"


@dataclass(frozen=True)
class FilterSelection:
    """Current state of the calendar selectors.

    Each selector is either ``"all"`` or the id of a loaded option. The
    instrument selector also accepts ``"none"`` for events without an
    instrument.
    """
    selected_date: datetime
    user_id: str = ALL
    type_id: str = ALL
    instrument_id: str = ALL
    status_id: str = ALL

    def normalized(self, options: Mapping[str, Iterable]) -> "FilterSelection":
        """
        Reset selectors whose value is not among the loaded options.

        ``options`` maps selector name ("user_id", "type_id", "instrument_id",
        "status_id") to the ids currently available for it. Selectors missing
        from the mapping are left alone.
        """
        changes = {}
        for name, available in options.items():
            value = getattr(self, name)
            if value == ALL or (name == "instrument_id" and value == NO_INSTRUMENT):
                continue
            if str(value) not in {str(option) for option in available}:
                changes[name] = ALL
        return replace(self, **changes) if changes else self


def _same_id(left, right) -> bool:
    return left is not None and str(left) == str(right)


def matches_assignee(event: EventView, user_id: str) -> bool:
    """
    Member selector.

    The rule depends on whether the event has assignments:

    - no assignments: the event matches if the assigner is the selected member;
    - one or more assignments: the event matches only if the selected member
      is among the assignees. The assigner does not count in this case.
    """
    if user_id == ALL:
        return True
    if not event.assignments:
        return _same_id(event.assigner.id, user_id)
    return any(_same_id(assignment.member_id, user_id) for assignment in event.assignments)


def matches_type(event: EventView, type_id: str) -> bool:
    if type_id == ALL:
        return True
    return event.type is not None and _same_id(event.type.id, type_id)


def matches_instrument(event: EventView, instrument_id: str) -> bool:
    if instrument_id == ALL:
        return True
    if instrument_id == NO_INSTRUMENT:
        return event.instrument is None
    return event.instrument is not None and _same_id(event.instrument.id, instrument_id)


def matches_status(event: EventView, status_id: str) -> bool:
    if status_id == ALL:
        return True
    return event.status is not None and _same_id(event.status.id, status_id)


def matches_selected_day(event: EventView, selected_date: datetime) -> bool:
    return day_window(selected_date).overlaps(event.start_date, event.end_date)


def event_matches(event: EventView, selection: FilterSelection, view: CalendarView | str) -> bool:
    if not matches_assignee(event, selection.user_id):
        return False
    if not matches_type(event, selection.type_id):
        return False
    if not matches_instrument(event, selection.instrument_id):
        return False
    if not matches_status(event, selection.status_id):
        return False
    if as_view(view) is CalendarView.DAY:
        return matches_selected_day(event, selection.selected_date)
    return True


def filter_events(
    events: Iterable[EventView], selection: FilterSelection, view: CalendarView | str
) -> list[EventView]:
    """Events passing every selector, in their original order."""
    view = as_view(view)
    return [event for event in events if event_matches(event, selection, view)]


def search_events(events: Iterable[EventView], query: str | None) -> list[EventView]:
    """
    Case-insensitive free-text search used by the agenda view.

    Looks at title, description, assigner name, type name, instrument name
    and assignee names. A blank query returns every event.
    """
    events = list(events)
    needle = (query or "").strip().lower()
    if not needle:
        return events

    def haystack(event: EventView):
        yield event.title
        yield event.description
        yield event.assigner.name
        if event.type is not None:
            yield event.type.name
        if event.instrument is not None:
            yield event.instrument.name
        for assignment in event.assignments:
            yield assignment.name

    return [
        event for event in events
        if any(text and needle in text.lower() for text in haystack(event))
    ]
