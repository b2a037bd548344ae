"""Event and assignment models for the lab calendar.

An Event is a single scheduled item: an instrument booking, a task or a
meeting. Every event has exactly one assigner (the lab member who created
it) and zero or more assignments (members taking part). Recurring creation
produces independent events that share a ``series_id``.
"""

from datetime import UTC, datetime
from typing import Optional
from uuid import UUID

from sqlmodel import Field, Relationship, SQLModel

from labchat.models.lab import Instrument, Lab, LabMember
from labchat.models.lookup import EventStatus, EventType


def utcnow() -> datetime:
    """Current time as naive UTC, the form timestamps are stored in."""
    return datetime.now(UTC).replace(tzinfo=None)


class Event(SQLModel, table=True):
    """A calendar event belonging to a lab.

    Attributes:
        id: Integer primary key.
        lab_id: Lab whose calendar shows the event.
        member_id: The assigner (lab member who owns the event).
        instrument_id: Booked instrument, if any.
        type_id: Event type; drives colour and status rules.
        status_id: Current status, if any.
        title: Event title.
        description: Optional free-text description.
        start_time: Start, naive UTC.
        end_time: End, naive UTC. Never before start_time.
        series_id: Shared by every instance created from one recurring
            template. None for one-off events.
        updated_at: Last modification time.
        assignments: Members attached to the event, in insertion order.
    """
    id: int | None = Field(default=None, primary_key=True)
    lab_id: int = Field(foreign_key="lab.id", index=True)
    member_id: int = Field(foreign_key="labmember.id")
    instrument_id: int | None = Field(default=None, foreign_key="instrument.id")
    type_id: int = Field(foreign_key="eventtype.id")
    status_id: int | None = Field(default=None, foreign_key="eventstatus.id")
    title: str
    description: str | None = None
    start_time: datetime = Field(index=True)
    end_time: datetime = Field(index=True)
    series_id: UUID | None = Field(default=None, index=True)
    updated_at: datetime = Field(default_factory=utcnow)

    # Relationships
    lab: Optional[Lab] = Relationship()
    assigner: Optional[LabMember] = Relationship(back_populates="assigned_events")
    instrument: Optional[Instrument] = Relationship()
    type: Optional[EventType] = Relationship()
    status: Optional[EventStatus] = Relationship()
    assignments: list["EventAssignment"] = Relationship(
        back_populates="event",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "EventAssignment.id",
        },
    )


class EventAssignment(SQLModel, table=True):
    """A lab member attached to an event as a participant.

    Assignments are distinct from the assigner: the assigner owns the event,
    assignees take part in it.
    """
    id: int | None = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", index=True)
    member_id: int = Field(foreign_key="labmember.id", index=True)

    event: Optional[Event] = Relationship(back_populates="assignments")
    member: Optional[LabMember] = Relationship()
