"""Calendar event service.

Everything that reads or writes events in the database lives here. Routes
call these functions with a session; the pure calendar modules (ranges,
recurring, filters, layout) never touch the database.

Timestamps are stored as naive UTC. Aware datetimes handed in are converted
first; naive ones are taken to already be UTC.
"""
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from labchat.calendar import statuses
from labchat.calendar.colors import resolve_event_color
from labchat.calendar.recurring import EventCreate, RecurringTemplate, expand_template
from labchat.calendar.views import (
    AssignmentRef,
    EventStatusRef,
    EventTypeRef,
    EventView,
    InstrumentRef,
    LabRef,
    UserRef,
)
from labchat.core.config import settings
from labchat.models import (
    Event,
    EventAssignment,
    EventStatus,
    EventType,
    Instrument,
    LabMember,
)
from labchat.models.event import utcnow

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "lab_id",
    "member_id",
    "instrument_id",
    "title",
    "description",
    "status_id",
    "start_time",
    "end_time",
    "type_id",
    "assigned_member_ids",
}


class CalendarError(Exception):
    """Base class for calendar errors that should reach the caller."""


class EventNotFoundError(CalendarError):
    pass


class MemberNotFoundError(CalendarError):
    pass


class StatusNotFoundError(CalendarError):
    pass


class AssignmentNotFoundError(CalendarError):
    pass


class InvalidEventError(CalendarError):
    """The request describes an event that cannot be stored."""


class InvalidStatusChangeError(CalendarError):
    pass


class AssignmentError(CalendarError):
    """An assignment change that would leave the event in an invalid state."""


@dataclass(frozen=True)
class FailedOccurrence:
    index: int
    start_time: datetime
    error: str


@dataclass
class RecurringCreationReport:
    """Outcome of submitting every occurrence of a recurring template.

    Occurrences are committed one at a time. A failure does not undo the
    occurrences already created; it is recorded here instead.
    """
    series_id: UUID
    requested: int
    created: list[Event] = field(default_factory=list)
    failed: list[FailedOccurrence] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def is_complete(self) -> bool:
        return self.created_count == self.requested

    @property
    def is_partial(self) -> bool:
        return 0 < self.created_count < self.requested


def to_utc_naive(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(UTC).replace(tzinfo=None)


def to_event_view(event: Event) -> EventView:
    """Flatten a stored event and its relations into an EventView."""
    event_type = event.type
    assigner = event.assigner

    return EventView(
        id=event.id,
        title=event.title,
        description=event.description or "",
        start_date=event.start_time,
        end_date=event.end_time,
        color=resolve_event_color(
            event_type.name if event_type else "",
            event_type.color if event_type else None,
        ),
        assigner=UserRef(
            id=str(event.member_id),
            name=assigner.display_name if assigner else "",
            picture_path=assigner.picture_path if assigner else None,
        ),
        type=EventTypeRef(id=event_type.id, name=event_type.name, color=event_type.color)
        if event_type
        else None,
        status=EventStatusRef(
            id=event.status.id,
            name=event.status.name,
            color=event.status.color,
            description=event.status.description,
        )
        if event.status
        else None,
        instrument=InstrumentRef(id=event.instrument.id, name=event.instrument.name)
        if event.instrument
        else None,
        lab=LabRef(id=event.lab.id, name=event.lab.name) if event.lab else None,
        assignments=tuple(
            AssignmentRef(
                id=assignment.id,
                member_id=assignment.member_id,
                name=assignment.member.display_name if assignment.member else "",
            )
            for assignment in event.assignments
        ),
        series_id=event.series_id,
    )


def list_lab_events(session: Session, lab_id: int, start: datetime, end: datetime) -> list[Event]:
    """Events of a lab overlapping [start, end] (both inclusive)."""
    statement = (
        select(Event)
        .where(Event.lab_id == lab_id)
        .where(Event.start_time <= to_utc_naive(end))
        .where(Event.end_time >= to_utc_naive(start))
        .order_by(Event.start_time, Event.id)
    )
    return list(session.exec(statement).all())


def list_member_events(
    session: Session, lab_id: int, member_id: int, start: datetime, end: datetime
) -> list[Event]:
    """Events of a lab overlapping [start, end] where the member is an assignee."""
    statement = (
        select(Event)
        .join(EventAssignment, EventAssignment.event_id == Event.id)
        .where(Event.lab_id == lab_id)
        .where(EventAssignment.member_id == member_id)
        .where(Event.start_time <= to_utc_naive(end))
        .where(Event.end_time >= to_utc_naive(start))
        .order_by(Event.start_time, Event.id)
    )
    return list(session.exec(statement).all())


def get_event(session: Session, event_id: int) -> Event:
    event = session.get(Event, event_id)
    if not event:
        raise EventNotFoundError("Event not found")
    return event


def _check_times(start: datetime, end: datetime) -> None:
    if end <= start:
        raise InvalidEventError("End time must be after start time")
    span_days = (end.date() - start.date()).days + 1
    if span_days > settings.max_multi_day_span_days:
        raise InvalidEventError(
            f"Events cannot span more than {settings.max_multi_day_span_days} days"
        )


def _get_type(session: Session, type_id: int) -> EventType:
    event_type = session.get(EventType, type_id)
    if not event_type:
        raise InvalidEventError("Invalid event type")
    return event_type


def _get_status_by_name(session: Session, name: str) -> EventStatus:
    status = session.exec(select(EventStatus).where(EventStatus.name == name)).first()
    if not status:
        raise StatusNotFoundError(f"Status '{name}' not found")
    return status


def _resolve_status(session: Session, event_type: EventType | None, status_id: int | None) -> EventStatus:
    """The requested status, or the default one for the event type."""
    type_name = event_type.name if event_type else ""
    if status_id is None:
        return _get_status_by_name(session, statuses.default_status_for_type(type_name))

    status = session.get(EventStatus, status_id)
    if not status:
        raise InvalidEventError("Invalid status ID")
    if not statuses.is_valid_status_change(type_name, status.name):
        raise InvalidStatusChangeError(f"Cannot change {type_name} event to {status.name} status")
    return status


def _get_member(session: Session, member_id: int, lab_id: int | None = None) -> LabMember:
    member = session.get(LabMember, member_id)
    if not member or (lab_id is not None and member.lab_id != lab_id):
        raise MemberNotFoundError("Member not found")
    return member


def _lab_member_ids(session: Session, lab_id: int, member_ids) -> set[int]:
    if not member_ids:
        return set()
    statement = (
        select(LabMember.id)
        .where(LabMember.lab_id == lab_id)
        .where(LabMember.id.in_(list(member_ids)))
    )
    return set(session.exec(statement).all())


def _check_instrument(session: Session, instrument_id: int | None, lab_id: int) -> None:
    if instrument_id is None:
        return
    instrument = session.get(Instrument, instrument_id)
    if not instrument or instrument.lab_id != lab_id:
        raise InvalidEventError("Invalid instrument")


def create_event(session: Session, payload: EventCreate) -> Event:
    """
    Create one event with its assignments.

    The event and its assignments are committed together. Raises a
    CalendarError subclass if the payload is invalid; nothing is written in
    that case.
    """
    if not payload.title or not payload.title.strip():
        raise InvalidEventError("Title is required")

    start = to_utc_naive(payload.start_time)
    end = to_utc_naive(payload.end_time)
    _check_times(start, end)

    event_type = _get_type(session, payload.type_id)
    status = _resolve_status(session, event_type, payload.status_id)
    _get_member(session, payload.member_id, payload.lab_id)
    _check_instrument(session, payload.instrument_id, payload.lab_id)

    assigned_ids = list(dict.fromkeys(payload.assigned_member_ids))
    unknown = set(assigned_ids) - _lab_member_ids(session, payload.lab_id, assigned_ids)
    if unknown:
        raise MemberNotFoundError(f"Members not found in lab: {sorted(unknown)}")

    event = Event(
        lab_id=payload.lab_id,
        member_id=payload.member_id,
        instrument_id=payload.instrument_id,
        type_id=event_type.id,
        status_id=status.id,
        title=payload.title.strip(),
        description=payload.description,
        start_time=start,
        end_time=end,
        series_id=payload.series_id,
    )
    event.assignments = [EventAssignment(member_id=member_id) for member_id in assigned_ids]
    session.add(event)
    session.commit()
    session.refresh(event)

    logger.info(f"Created event {event.id} '{event.title}' in lab {event.lab_id}")
    return event


def create_recurring_events(
    session: Session, template: RecurringTemplate, number_titles: bool = False
) -> RecurringCreationReport:
    """
    Expand a recurring template and create every occurrence.

    The template is validated and expanded first (RecurrenceValidationError,
    nothing written). Each occurrence is then committed on its own; when one
    fails its transaction is rolled back, the failure is recorded and the
    remaining occurrences are still attempted.
    """
    payloads = expand_template(
        template, number_titles=number_titles, max_repetitions=settings.max_repetitions
    )
    # Shared fields are checked once so a bad type fails the whole request up front
    _get_type(session, template.type_id)
    _get_member(session, template.member_id, template.lab_id)

    report = RecurringCreationReport(series_id=payloads[0].series_id, requested=len(payloads))
    for index, payload in enumerate(payloads):
        try:
            report.created.append(create_event(session, payload))
        except (CalendarError, SQLAlchemyError) as e:
            session.rollback()
            logger.warning(
                f"Recurring occurrence {index + 1}/{len(payloads)} of series {report.series_id} failed: {e}"
            )
            report.failed.append(FailedOccurrence(index=index, start_time=payload.start_time, error=str(e)))

    logger.info(
        f"Recurring series {report.series_id}: created {report.created_count} of {report.requested}"
    )
    return report


def update_event(session: Session, event_id: int, changes: dict) -> Event:
    """
    Replace the given fields of an event.

    Only keys present in ``changes`` are touched. ``assigned_member_ids``
    replaces the whole assignment list; ids that are not members of the lab
    are dropped. A status change must be allowed for the event's type; when
    only the type changes and the current status is not allowed for it, the
    status falls back to the new type's default.

    Moving an event to another lab requires its assigner, instrument and
    remaining assignees to belong to that lab.
    """
    unknown_fields = set(changes) - UPDATABLE_FIELDS
    if unknown_fields:
        raise InvalidEventError(f"Unknown fields: {sorted(unknown_fields)}")

    event = get_event(session, event_id)

    if "title" in changes and (not changes["title"] or not changes["title"].strip()):
        raise InvalidEventError("Title is required")

    event_type = _get_type(session, changes["type_id"]) if "type_id" in changes else event.type
    if changes.get("status_id") is not None:
        _resolve_status(session, event_type, changes["status_id"])
    elif "type_id" in changes and event.status is not None:
        if not statuses.is_valid_status_change(event_type.name, event.status.name):
            default = _get_status_by_name(session, statuses.default_status_for_type(event_type.name))
            logger.info(
                f"Event {event_id} status {event.status.name} not allowed for {event_type.name}, "
                f"reset to {default.name}"
            )
            changes = {**changes, "status_id": default.id}

    lab_id = changes.get("lab_id", event.lab_id)
    lab_changed = lab_id != event.lab_id
    if "member_id" in changes or lab_changed:
        _get_member(session, changes.get("member_id", event.member_id), lab_id)
    if "instrument_id" in changes or lab_changed:
        _check_instrument(session, changes.get("instrument_id", event.instrument_id), lab_id)
    if lab_changed and "assigned_member_ids" not in changes:
        current = [assignment.member_id for assignment in event.assignments]
        outside = set(current) - _lab_member_ids(session, lab_id, current)
        if outside:
            raise MemberNotFoundError(f"Assigned members not in lab {lab_id}: {sorted(outside)}")

    start = to_utc_naive(changes["start_time"]) if "start_time" in changes else event.start_time
    end = to_utc_naive(changes["end_time"]) if "end_time" in changes else event.end_time
    if "start_time" in changes or "end_time" in changes:
        _check_times(start, end)

    for name in ("lab_id", "member_id", "instrument_id", "description", "status_id", "type_id"):
        if name in changes:
            setattr(event, name, changes[name])
    if "title" in changes:
        event.title = changes["title"].strip()
    event.start_time = start
    event.end_time = end
    event.updated_at = utcnow()

    if "assigned_member_ids" in changes:
        requested = list(dict.fromkeys(changes["assigned_member_ids"] or []))
        valid = _lab_member_ids(session, lab_id, requested)
        dropped = [member_id for member_id in requested if member_id not in valid]
        if dropped:
            logger.warning(f"Ignoring unknown members {dropped} for event {event_id}")
        event.assignments = [
            EventAssignment(member_id=member_id) for member_id in requested if member_id in valid
        ]

    session.add(event)
    session.commit()
    session.refresh(event)

    logger.info(f"Updated event {event.id}")
    return event


def delete_event(session: Session, event_id: int) -> EventView:
    """Delete an event and its assignments. Returns the deleted event."""
    event = get_event(session, event_id)
    view = to_event_view(event)
    session.delete(event)
    session.commit()

    logger.info(f"Deleted event {event_id}")
    return view


def cancel_series(session: Session, series_id: UUID) -> int:
    """Delete every event created from one recurring template. Returns the count."""
    events = session.exec(select(Event).where(Event.series_id == series_id)).all()
    if not events:
        raise EventNotFoundError("Series not found")
    for event in events:
        session.delete(event)
    session.commit()

    logger.info(f"Deleted {len(events)} events of series {series_id}")
    return len(events)


def change_event_status(session: Session, event_id: int, status_name: str) -> Event:
    event = get_event(session, event_id)
    type_name = event.type.name if event.type else ""

    if not statuses.is_valid_status_change(type_name, status_name):
        raise InvalidStatusChangeError(f"Cannot change {type_name} event to {status_name} status")

    status = _get_status_by_name(session, status_name)
    event.status_id = status.id
    event.updated_at = utcnow()
    session.add(event)
    session.commit()
    session.refresh(event)

    logger.info(f"Event {event_id} status changed to {status_name}")
    return event


def assign_member(session: Session, event_id: int, member_id: int, lab_id: int) -> EventAssignment:
    event = session.get(Event, event_id)
    if not event or event.lab_id != lab_id:
        raise EventNotFoundError("Event not found")
    _get_member(session, member_id, lab_id)

    if any(assignment.member_id == member_id for assignment in event.assignments):
        raise AssignmentError("Member is already assigned to this event")

    assignment = EventAssignment(event_id=event_id, member_id=member_id)
    session.add(assignment)
    session.commit()
    session.refresh(assignment)
    return assignment


def remove_member(session: Session, event_id: int, member_id: int) -> None:
    """Remove an assignee. The last remaining assignee cannot be removed."""
    event = get_event(session, event_id)
    _get_member(session, member_id)

    assignments = list(event.assignments)
    if len(assignments) <= 1:
        raise AssignmentError("Cannot remove the last member assigned to this event")

    assignment = next((a for a in assignments if a.member_id == member_id), None)
    if assignment is None:
        raise AssignmentNotFoundError("Assignment not found")

    event.assignments.remove(assignment)
    session.add(event)
    session.commit()


def mark_elapsed_events(session: Session, now: datetime | None = None) -> int:
    """
    Move events that have ended to the "elapsed" status.

    Events already cancelled, completed or elapsed are left alone. Returns
    the number of events updated.
    """
    now = to_utc_naive(now or datetime.now(UTC))

    elapsed = session.exec(select(EventStatus).where(EventStatus.name == statuses.ELAPSED)).first()
    if not elapsed:
        logger.error("Elapsed status not found in database")
        return 0

    final_ids = select(EventStatus.id).where(EventStatus.name.in_(statuses.FINAL_STATUSES))
    statement = (
        select(Event)
        .where(Event.end_time < now)
        .where((Event.status_id == None) | (Event.status_id.not_in(final_ids)))  # noqa: E711
    )
    events = session.exec(statement).all()

    for event in events:
        event.status_id = elapsed.id
        session.add(event)
    session.commit()

    if events:
        logger.info(f"Updated {len(events)} events to elapsed status at {now.isoformat()}")
    return len(events)
