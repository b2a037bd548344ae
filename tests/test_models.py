"""Tests for database models."""

from datetime import datetime
from uuid import uuid4

import pytest
from sqlmodel import Session, select

from labchat.models import Event, EventAssignment, EventType, LabMember


class TestEventModel:
    """Tests for the Event model."""

    def test_create_event(self, session: Session, lab_data: dict):
        """Test creating a basic event."""
        event = Event(
            lab_id=lab_data["lab"].id,
            member_id=lab_data["members"][0].id,
            type_id=lab_data["task"].id,
            title="Order reagents",
            start_time=datetime(2025, 3, 5, 9, 0),
            end_time=datetime(2025, 3, 5, 10, 0),
        )
        session.add(event)
        session.commit()

        retrieved = session.exec(select(Event).where(Event.title == "Order reagents")).first()

        assert retrieved is not None
        assert retrieved.series_id is None
        assert retrieved.status_id is None
        assert retrieved.updated_at is not None
        assert retrieved.assigner.display_name == "Ada Lovelace"
        assert retrieved.lab.name == "Cell Biology Lab"

    def test_event_with_series_id(self, session: Session, lab_data: dict):
        """Test events sharing a series id."""
        series_id = uuid4()
        for day in (5, 12):
            session.add(
                Event(
                    lab_id=lab_data["lab"].id,
                    member_id=lab_data["members"][0].id,
                    type_id=lab_data["task"].id,
                    title="Weekly sync",
                    start_time=datetime(2025, 3, day, 9, 0),
                    end_time=datetime(2025, 3, day, 10, 0),
                    series_id=series_id,
                )
            )
        session.commit()

        series = session.exec(select(Event).where(Event.series_id == series_id)).all()
        assert len(series) == 2


class TestEventAssignments:
    """Tests for the EventAssignment relationship."""

    def test_assignments_in_insertion_order(self, session: Session, stored_event: Event, lab_data: dict):
        """Test assignments come back in insertion order with their members."""
        stored_event.assignments.append(EventAssignment(member_id=lab_data["members"][2].id))
        session.add(stored_event)
        session.commit()
        session.refresh(stored_event)

        names = [a.member.display_name for a in stored_event.assignments]
        assert names == ["Rosalind Franklin", "Barbara McClintock"]

    def test_delete_event_cascades(self, session: Session, stored_event: Event):
        """Test deleting an event removes its assignments."""
        event_id = stored_event.id
        session.delete(stored_event)
        session.commit()

        remaining = session.exec(
            select(EventAssignment).where(EventAssignment.event_id == event_id)
        ).all()
        assert remaining == []

    def test_member_assigned_events(self, session: Session, stored_event: Event, lab_data: dict):
        """Test the reverse relationship from member to owned events."""
        member = session.get(LabMember, lab_data["members"][0].id)
        assert [e.id for e in member.assigned_events] == [stored_event.id]


class TestLookupModels:
    """Tests for the lookup tables."""

    def test_event_type_name_unique(self, session: Session, lab_data: dict):
        """Test that event type names must be unique."""
        session.add(EventType(name="Task"))

        with pytest.raises(Exception):  # IntegrityError
            session.commit()
