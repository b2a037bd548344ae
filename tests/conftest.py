"""Shared test fixtures."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

import labchat.models  # noqa: F401  (registers every table)
from labchat.calendar.cache import LookupCache
from labchat.calendar.views import (
    AssignmentRef,
    EventStatusRef,
    EventTypeRef,
    EventView,
    InstrumentRef,
    UserRef,
)
from labchat.core.database import get_session
from labchat.main import app
from labchat.models import Event, EventAssignment, EventStatus, EventType, Instrument, Lab, LabMember


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Create a test client with the test database session and a fresh lookup cache."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    app.state.lookup_cache = LookupCache()
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="lab_data")
def lab_data_fixture(session: Session) -> dict:
    """A lab with members, instruments, the standard statuses and two event types."""
    lab = Lab(name="Cell Biology Lab")
    other_lab = Lab(name="Chemistry Lab")
    session.add(lab)
    session.add(other_lab)
    session.flush()

    members = [
        LabMember(lab_id=lab.id, display_name="Ada Lovelace"),
        LabMember(lab_id=lab.id, display_name="Rosalind Franklin"),
        LabMember(lab_id=lab.id, display_name="Barbara McClintock"),
    ]
    outsider = LabMember(lab_id=other_lab.id, display_name="Marie Curie")
    microscope = Instrument(lab_id=lab.id, name="Confocal Microscope")
    booking = EventType(name="Equipment Booking")
    task = EventType(name="Task", color="#123456")
    status_rows = {
        name: EventStatus(name=name)
        for name in ("booked", "scheduled", "cancelled", "completed", "elapsed")
    }
    for row in [*members, outsider, microscope, booking, task, *status_rows.values()]:
        session.add(row)
    session.commit()

    return {
        "lab": lab,
        "other_lab": other_lab,
        "members": members,
        "outsider": outsider,
        "instrument": microscope,
        "booking": booking,
        "task": task,
        "statuses": status_rows,
    }


@pytest.fixture(name="stored_event")
def stored_event_fixture(session: Session, lab_data: dict) -> Event:
    """A task on 2025-03-05 10:00-11:00 owned by the first member, assigned to the second."""
    members = lab_data["members"]
    event = Event(
        lab_id=lab_data["lab"].id,
        member_id=members[0].id,
        type_id=lab_data["task"].id,
        status_id=lab_data["statuses"]["scheduled"].id,
        title="Passage cells",
        description="Split the HeLa flasks",
        start_time=datetime(2025, 3, 5, 10, 0),
        end_time=datetime(2025, 3, 5, 11, 0),
    )
    event.assignments = [EventAssignment(member_id=members[1].id)]
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


@pytest.fixture(name="make_event")
def make_event_fixture():
    """Factory for EventView values used by the pure calendar tests."""

    def make_event(
        event_id: int = 1,
        start: datetime = datetime(2025, 3, 5, 9, 0),
        end: datetime = datetime(2025, 3, 5, 10, 0),
        assigner_id: str = "1",
        assignee_ids: tuple = (),
        type_id: int | None = 1,
        status_id: int | None = 1,
        instrument_id: int | None = None,
        title: str = "Event",
        **kwargs,
    ) -> EventView:
        return EventView(
            id=event_id,
            title=title,
            start_date=start,
            end_date=end,
            color="#10B981",
            assigner=UserRef(id=assigner_id, name=kwargs.pop("assigner_name", "Ada Lovelace")),
            type=EventTypeRef(id=type_id, name=kwargs.pop("type_name", "Task")) if type_id is not None else None,
            status=EventStatusRef(id=status_id, name="scheduled") if status_id is not None else None,
            instrument=InstrumentRef(id=instrument_id, name=kwargs.pop("instrument_name", "Microscope"))
            if instrument_id is not None
            else None,
            assignments=tuple(
                AssignmentRef(id=index, member_id=member_id, name=f"Member {member_id}")
                for index, member_id in enumerate(assignee_ids, start=1)
            ),
            **kwargs,
        )

    return make_event
