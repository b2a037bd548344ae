"""Read-only event records consumed by the calendar core.

The core never sees ORM rows. The service layer flattens each stored event
into an ``EventView`` (assigner and assignments resolved to names, colour
resolved from the type) and the filtering and layout functions work on
those plain values only.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class UserRef:
    """The assigner of an event. ``id`` is the lab member id as a string."""
    id: str
    name: str
    picture_path: str | None = None


@dataclass(frozen=True)
class AssignmentRef:
    id: int
    member_id: int | None
    name: str


@dataclass(frozen=True)
class EventTypeRef:
    id: int
    name: str
    color: str | None = None


@dataclass(frozen=True)
class EventStatusRef:
    id: int
    name: str
    color: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class InstrumentRef:
    id: int
    name: str | None = None


@dataclass(frozen=True)
class LabRef:
    id: int
    name: str


@dataclass(frozen=True)
class EventView:
    """A single calendar event as displayed.

    Attributes:
        id: Event id.
        title: Event title.
        start_date: Start of the event.
        end_date: End of the event, never before ``start_date``.
        color: Resolved hex colour (see ``labchat.calendar.colors``).
        assigner: The member who owns the event.
        description: Description text, empty when unset.
        type: Event type, if any.
        status: Current status, if any.
        instrument: Booked instrument, if any.
        lab: Owning lab, if known.
        assignments: Participating members in insertion order.
        series_id: Recurring series the event was created in, if any.
    """
    id: int
    title: str
    start_date: datetime
    end_date: datetime
    color: str
    assigner: UserRef
    description: str = ""
    type: EventTypeRef | None = None
    status: EventStatusRef | None = None
    instrument: InstrumentRef | None = None
    lab: LabRef | None = None
    assignments: tuple[AssignmentRef, ...] = field(default_factory=tuple)
    series_id: UUID | None = None

    def __post_init__(self):
        if self.end_date < self.start_date:
            raise ValueError(
                f"Event {self.id} ends ({self.end_date}) before it starts ({self.start_date})"
            )
