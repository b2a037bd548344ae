"""Calendar routes: event CRUD, recurring series and calendar views."""
from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from fastapi.responses import JSONResponse
from sqlmodel import Session

from labchat.calendar import service
from labchat.calendar.cache import LookupCache, get_lookup_cache
from labchat.calendar.filters import ALL, FilterSelection, filter_events, search_events
from labchat.calendar.layout import group_agenda, month_cells, month_grid, partition_events
from labchat.calendar.ranges import CalendarView, as_view, resolve_date_range
from labchat.calendar.recurring import preview_occurrences
from labchat.core.config import settings
from labchat.core.database import get_session
from labchat.routes.lookups import (
    cached_event_statuses,
    cached_event_types,
    cached_instruments,
    lab_member_ids,
)
from labchat.schemas.calendar import (
    AgendaDayOut,
    AssignMemberRequest,
    CalendarViewOut,
    CellOut,
    ChangeStatusRequest,
    DeleteEventRequest,
    EventCreateRequest,
    EventOut,
    EventUpdateRequest,
    FailedOccurrenceOut,
    OccurrenceOut,
    RecurrencePreviewOut,
    RecurringEventRequest,
    RecurringReportOut,
    RemoveMemberRequest,
)

router = APIRouter(prefix="/calendar", tags=["calendar"])


def parse_query_datetime(value: str, name: str) -> datetime:
    """
    Parse an ISO 8601 query parameter.

    A trailing "Z" is accepted and a value without a timezone is taken to
    be UTC. Returns an aware UTC datetime.
    """
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {name} date") from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_range(start: str, end: str) -> tuple[datetime, datetime]:
    start_date = parse_query_datetime(start, "start")
    end_date = parse_query_datetime(end, "end")
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="Start date must be before or equal to end date")
    return start_date, end_date


def event_out(event) -> EventOut:
    return EventOut.model_validate(service.to_event_view(event))


@router.get("/events/{lab_id}", response_model=list[EventOut])
async def lab_events(
    lab_id: int = Path(ge=1),
    start: str = Query(...),
    end: str = Query(...),
    session: Session = Depends(get_session),
):
    """
    Events of a lab overlapping [start, end].

    Both bounds are inclusive ISO 8601 timestamps; a bound without a
    timezone is read as UTC.
    """
    start_date, end_date = parse_range(start, end)
    return [event_out(e) for e in service.list_lab_events(session, lab_id, start_date, end_date)]


@router.get("/member-events/{lab_id}/{member_id}", response_model=list[EventOut])
async def member_events(
    lab_id: int = Path(ge=1),
    member_id: int = Path(ge=1),
    start: str = Query(...),
    end: str = Query(...),
    session: Session = Depends(get_session),
):
    """Events of a lab overlapping [start, end] where the member is assigned."""
    start_date, end_date = parse_range(start, end)
    events = service.list_member_events(session, lab_id, member_id, start_date, end_date)
    return [event_out(e) for e in events]


@router.get("/event/{event_id}", response_model=EventOut)
async def single_event(event_id: int = Path(ge=1), session: Session = Depends(get_session)):
    return event_out(service.get_event(session, event_id))


@router.post("/create-event", response_model=EventOut, status_code=201)
async def create_event(body: EventCreateRequest, session: Session = Depends(get_session)):
    """
    Create a single event.

    When no status is given the event starts as "booked" for booking types
    and "scheduled" otherwise.
    """
    return event_out(service.create_event(session, body.to_payload()))


@router.post("/create-recurring-events", response_model=RecurringReportOut)
async def create_recurring_events(body: RecurringEventRequest, session: Session = Depends(get_session)):
    """
    Create every occurrence of a recurring event.

    Occurrences are created one by one and all share a series id. Returns
    201 when all were created, 207 when only some were, 500 when none were.
    The body always lists what was created and what failed.
    """
    report = service.create_recurring_events(session, body.to_template(), number_titles=body.number_titles)

    if report.is_complete:
        status_code = 201
        message = f"Successfully created {report.created_count} recurring events"
    elif report.is_partial:
        status_code = 207
        message = f"Created {report.created_count} of {report.requested} recurring events"
    else:
        status_code = 500
        message = "Failed to create recurring events"

    content = RecurringReportOut(
        message=message,
        series_id=report.series_id,
        requested=report.requested,
        events_created=report.created_count,
        events=[event_out(e) for e in report.created],
        failed=[FailedOccurrenceOut.model_validate(f) for f in report.failed],
    )
    return JSONResponse(status_code=status_code, content=content.model_dump(mode="json", by_alias=True))


@router.post("/recurring-preview", response_model=RecurrencePreviewOut)
async def recurring_preview(body: RecurringEventRequest):
    """The first occurrences of a recurring event, as listed before submitting."""
    preview = preview_occurrences(
        body.to_template(),
        limit=settings.recurring_preview_limit,
        max_repetitions=settings.max_repetitions,
    )
    return RecurrencePreviewOut(
        occurrences=[OccurrenceOut.model_validate(o) for o in preview.shown],
        remaining=preview.remaining,
        total=preview.total,
    )


@router.put("/update-event", response_model=EventOut)
async def update_event(body: EventUpdateRequest, session: Session = Depends(get_session)):
    return event_out(service.update_event(session, body.id, body.changes()))


@router.delete("/delete-event")
async def delete_event(body: DeleteEventRequest, session: Session = Depends(get_session)):
    deleted = service.delete_event(session, body.id)
    return {
        "event": EventOut.model_validate(deleted).model_dump(mode="json", by_alias=True),
        "message": "Event deleted successfully",
    }


@router.delete("/series/{series_id}")
async def delete_series(series_id: UUID, session: Session = Depends(get_session)):
    """Delete every event created from one recurring template."""
    deleted = service.cancel_series(session, series_id)
    return {"deleted": deleted, "message": f"Deleted {deleted} events"}


@router.put("/change-status", response_model=EventOut)
async def change_status(body: ChangeStatusRequest, session: Session = Depends(get_session)):
    """Move an event to a new status, if its type allows that status."""
    return event_out(service.change_event_status(session, body.event_id, body.status_name))


@router.post("/assign-member", status_code=201)
async def assign_member(body: AssignMemberRequest, session: Session = Depends(get_session)):
    assignment = service.assign_member(session, body.event_id, body.member_id, body.lab_id)
    return {"id": assignment.id, "eventId": assignment.event_id, "memberId": assignment.member_id}


@router.delete("/remove-member")
async def remove_member(body: RemoveMemberRequest, session: Session = Depends(get_session)):
    service.remove_member(session, body.event_id, body.member_id)
    return {"message": "Member removed from event successfully"}


@router.get("/view/{lab_id}", response_model=CalendarViewOut)
async def calendar_view(
    lab_id: int = Path(ge=1),
    date: str | None = Query(None, description="Selected date, ISO 8601. Defaults to now."),
    view: str = Query(CalendarView.MONTH.value),
    user: str = Query(ALL),
    type: str = Query(ALL),
    instrument: str = Query(ALL),
    status: str = Query(ALL),
    q: str | None = Query(None, description="Free-text search (agenda view)"),
    session: Session = Depends(get_session),
    cache: LookupCache = Depends(get_lookup_cache),
):
    """
    Everything a calendar view needs in one call.

    Resolves the range for the selected date and view, fetches the lab's
    events in it, applies the selectors (a selector naming an id the lab
    does not have falls back to "all"), and splits the result into
    single-day and multi-day events. The month view also gets its grid
    cells and the agenda view its day groups.
    """
    current_view = as_view(view)
    selected = parse_query_datetime(date, "date") if date else datetime.now(UTC)
    # Stored times are naive UTC; keep the whole pipeline in that form
    selected = service.to_utc_naive(selected)

    date_range = resolve_date_range(selected, current_view)
    events = [
        service.to_event_view(e)
        for e in service.list_lab_events(session, lab_id, date_range.start, date_range.end)
    ]

    selection = FilterSelection(
        selected_date=selected,
        user_id=user,
        type_id=type,
        instrument_id=instrument,
        status_id=status,
    ).normalized(
        {
            "user_id": lab_member_ids(session, lab_id),
            "type_id": [ref.id for ref in cached_event_types(session, cache)],
            "instrument_id": [ref.id for ref in cached_instruments(session, cache, lab_id)],
            "status_id": [ref.id for ref in cached_event_statuses(session, cache)],
        }
    )
    filtered = search_events(filter_events(events, selection, current_view), q)
    partitioned = partition_events(filtered)

    result = CalendarViewOut(
        view=current_view.value,
        start=date_range.start,
        end=date_range.end,
        single_day_events=[EventOut.model_validate(e) for e in partitioned.single_day],
        multi_day_events=[EventOut.model_validate(e) for e in partitioned.multi_day],
    )

    if current_view is CalendarView.MONTH:
        cells = month_cells(selected)
        result.cells = [
            CellOut(
                date=cell.date,
                day=grid_cell.day,
                current_month=grid_cell.current_month,
                slots=[EventOut.model_validate(e) if e else None for e in cell.slots],
                overflow=cell.overflow,
            )
            for grid_cell, cell in zip(cells, month_grid(partitioned, selected))
        ]
    elif current_view is CalendarView.AGENDA:
        result.agenda = [AgendaDayOut.model_validate(day) for day in group_agenda(partitioned, selected)]

    return result
