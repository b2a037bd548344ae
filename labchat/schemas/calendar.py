"""Request and response bodies for the calendar API.

Field names are snake_case in Python and camelCase on the wire (labId,
startTime, assignedMembers, ...). Both spellings are accepted on input.
"""
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from labchat.calendar.recurring import EventCreate, RecurringTemplate


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# -- Responses ----------------------------------------------------------------


class UserOut(CamelModel):
    id: str
    name: str
    picture_path: str | None = None


class AssignmentOut(CamelModel):
    id: int
    member_id: int | None = None
    name: str


class EventTypeOut(CamelModel):
    id: int
    name: str
    color: str | None = None


class EventStatusOut(CamelModel):
    id: int
    name: str
    color: str | None = None
    description: str | None = None


class InstrumentOut(CamelModel):
    id: int
    name: str | None = None


class LabOut(CamelModel):
    id: int
    name: str


class MemberOut(CamelModel):
    id: int
    lab_id: int
    display_name: str
    picture_path: str | None = None


class EventOut(CamelModel):
    id: int
    title: str
    description: str = ""
    start_date: datetime
    end_date: datetime
    color: str
    assigner: UserOut
    type: EventTypeOut | None = None
    status: EventStatusOut | None = None
    instrument: InstrumentOut | None = None
    lab: LabOut | None = None
    assignments: list[AssignmentOut] = Field(default_factory=list)
    series_id: UUID | None = None


class FailedOccurrenceOut(CamelModel):
    index: int
    start_time: datetime
    error: str


class RecurringReportOut(CamelModel):
    message: str
    series_id: UUID
    requested: int
    events_created: int
    events: list[EventOut]
    failed: list[FailedOccurrenceOut]


class OccurrenceOut(CamelModel):
    index: int
    start: datetime
    end: datetime


class RecurrencePreviewOut(CamelModel):
    occurrences: list[OccurrenceOut]
    remaining: int
    total: int


class CellOut(CamelModel):
    date: date
    day: int
    current_month: bool
    slots: list[EventOut | None]
    overflow: int


class AgendaDayOut(CamelModel):
    date: date
    events: list[EventOut]
    multi_day_events: list[EventOut]


class CalendarViewOut(CamelModel):
    view: str
    start: datetime
    end: datetime
    single_day_events: list[EventOut]
    multi_day_events: list[EventOut]
    cells: list[CellOut] | None = None
    agenda: list[AgendaDayOut] | None = None


# -- Requests -----------------------------------------------------------------


class EventCreateRequest(CamelModel):
    lab_id: int
    member_id: int
    title: str
    type_id: int
    start_time: datetime
    end_time: datetime
    description: str | None = None
    instrument_id: int | None = None
    status_id: int | None = None
    assigned_members: list[int] = Field(default_factory=list)

    def to_payload(self) -> EventCreate:
        return EventCreate(
            lab_id=self.lab_id,
            member_id=self.member_id,
            title=self.title,
            type_id=self.type_id,
            start_time=self.start_time,
            end_time=self.end_time,
            description=self.description,
            instrument_id=self.instrument_id,
            status_id=self.status_id,
            assigned_member_ids=tuple(self.assigned_members),
        )


class RecurringEventRequest(EventCreateRequest):
    # Range and choice checks happen in validate_template so that the
    # response carries one message per field
    frequency: str
    repetitions: int
    number_titles: bool = False

    def to_template(self) -> RecurringTemplate:
        return RecurringTemplate(
            lab_id=self.lab_id,
            member_id=self.member_id,
            title=self.title,
            type_id=self.type_id,
            start=self.start_time,
            end=self.end_time,
            frequency=self.frequency,
            repetitions=self.repetitions,
            description=self.description,
            instrument_id=self.instrument_id,
            status_id=self.status_id,
            assigned_member_ids=list(self.assigned_members),
        )


class EventUpdateRequest(CamelModel):
    id: int
    lab_id: int | None = None
    member_id: int | None = None
    instrument_id: int | None = None
    title: str | None = None
    description: str | None = None
    status_id: int | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    type_id: int | None = None
    assigned_members: list[int] | None = None

    def changes(self) -> dict:
        """Fields the client actually sent, keyed the way the service expects."""
        changes = self.model_dump(exclude_unset=True, exclude={"id"})
        # instrument_id and description may be cleared with an explicit null;
        # other fields ignore nulls
        for name in ("lab_id", "member_id", "title", "start_time", "end_time", "type_id"):
            if changes.get(name, ...) is None:
                del changes[name]
        if "assigned_members" in changes:
            changes["assigned_member_ids"] = changes.pop("assigned_members") or []
        return changes


class DeleteEventRequest(CamelModel):
    id: int


class ChangeStatusRequest(CamelModel):
    event_id: int
    status_name: str


class AssignMemberRequest(CamelModel):
    event_id: int
    member_id: int
    lab_id: int


class RemoveMemberRequest(CamelModel):
    event_id: int
    member_id: int
