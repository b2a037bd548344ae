"""Lookup routes: event types, statuses, instruments and lab members.

Types, statuses and instruments come from the application's LookupCache.
Members are read fresh every time since admissions change them often.
"""
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlmodel import Session, select

from labchat.calendar.cache import (
    EVENT_STATUSES,
    EVENT_TYPES,
    INSTRUMENTS,
    LookupCache,
    get_lookup_cache,
)
from labchat.calendar.views import EventStatusRef, EventTypeRef, InstrumentRef
from labchat.core.database import get_session
from labchat.models import EventStatus, EventType, Instrument, Lab, LabMember
from labchat.schemas.calendar import EventStatusOut, EventTypeOut, InstrumentOut, MemberOut

router = APIRouter(tags=["lookups"])


def cached_event_types(session: Session, cache: LookupCache) -> list[EventTypeRef]:
    def load():
        rows = session.exec(select(EventType).order_by(EventType.id)).all()
        return [EventTypeRef(id=row.id, name=row.name, color=row.color) for row in rows]

    return cache.get_or_load(EVENT_TYPES, load)


def cached_event_statuses(session: Session, cache: LookupCache) -> list[EventStatusRef]:
    def load():
        rows = session.exec(select(EventStatus).order_by(EventStatus.id)).all()
        return [
            EventStatusRef(id=row.id, name=row.name, color=row.color, description=row.description)
            for row in rows
        ]

    return cache.get_or_load(EVENT_STATUSES, load)


def cached_instruments(session: Session, cache: LookupCache, lab_id: int) -> list[InstrumentRef]:
    def load():
        rows = session.exec(
            select(Instrument).where(Instrument.lab_id == lab_id).order_by(Instrument.id)
        ).all()
        return [InstrumentRef(id=row.id, name=row.name) for row in rows]

    return cache.get_or_load(INSTRUMENTS, load, lab_id)


def lab_member_ids(session: Session, lab_id: int) -> list[int]:
    return list(session.exec(select(LabMember.id).where(LabMember.lab_id == lab_id)).all())


@router.get("/calendar/types", response_model=list[EventTypeOut])
async def event_types(
    session: Session = Depends(get_session),
    cache: LookupCache = Depends(get_lookup_cache),
):
    return [EventTypeOut.model_validate(ref) for ref in cached_event_types(session, cache)]


@router.get("/calendar/statuses", response_model=list[EventStatusOut])
async def event_statuses(
    session: Session = Depends(get_session),
    cache: LookupCache = Depends(get_lookup_cache),
):
    return [EventStatusOut.model_validate(ref) for ref in cached_event_statuses(session, cache)]


@router.post("/calendar/lookups/invalidate")
async def invalidate_lookups(cache: LookupCache = Depends(get_lookup_cache)):
    """Forget cached types, statuses and instruments after they were edited."""
    cache.invalidate()
    return {"message": "Lookup cache cleared"}


@router.get("/lab/{lab_id}/instruments", response_model=list[InstrumentOut])
async def lab_instruments(
    lab_id: int = Path(ge=1),
    session: Session = Depends(get_session),
    cache: LookupCache = Depends(get_lookup_cache),
):
    if not session.get(Lab, lab_id):
        raise HTTPException(status_code=404, detail="Lab not found")
    return [InstrumentOut.model_validate(ref) for ref in cached_instruments(session, cache, lab_id)]


@router.get("/lab/{lab_id}/members", response_model=list[MemberOut])
async def lab_members(lab_id: int = Path(ge=1), session: Session = Depends(get_session)):
    if not session.get(Lab, lab_id):
        raise HTTPException(status_code=404, detail="Lab not found")
    rows = session.exec(
        select(LabMember).where(LabMember.lab_id == lab_id).order_by(LabMember.display_name)
    ).all()
    return [MemberOut.model_validate(row) for row in rows]
