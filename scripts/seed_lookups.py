#!/usr/bin/env python3
"""
Seed the calendar lookup tables.

Creates the event statuses and default event types the calendar relies on,
and optionally a demo lab with a few members and instruments. Existing rows
(matched by name) are left untouched, so the script can be re-run safely.

Usage:
    python scripts/seed_lookups.py
    python scripts/seed_lookups.py --demo-lab "Cell Biology Lab"
"""
import argparse
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlmodel import Session, select

from labchat.calendar import statuses
from labchat.calendar.colors import BLUE, GREEN, PURPLE
from labchat.core.database import create_db_and_tables, engine
from labchat.models import EventStatus, EventType, Instrument, Lab, LabMember

logger = logging.getLogger("seed_lookups")

STATUSES = {
    statuses.BOOKED: ("#3B82F6", "Instrument reserved"),
    statuses.SCHEDULED: ("#6366F1", "Planned and not yet done"),
    statuses.CANCELLED: ("#EF4444", "Called off"),
    statuses.COMPLETED: ("#10B981", "Done"),
    statuses.ELAPSED: ("#9CA3AF", "Ended without being completed or cancelled"),
}

EVENT_TYPES = {
    "Equipment Booking": BLUE,
    "Task": PURPLE,
    "Meeting": GREEN,
    "Training": GREEN,
}

DEMO_MEMBERS = ["Ada Lovelace", "Rosalind Franklin", "Barbara McClintock"]
DEMO_INSTRUMENTS = ["Confocal Microscope", "Flow Cytometer", "PCR Machine"]


def seed_statuses(session: Session) -> int:
    existing = set(session.exec(select(EventStatus.name)).all())
    created = 0
    for name, (color, description) in STATUSES.items():
        if name not in existing:
            session.add(EventStatus(name=name, color=color, description=description))
            created += 1
    return created


def seed_event_types(session: Session) -> int:
    existing = set(session.exec(select(EventType.name)).all())
    created = 0
    for name, color in EVENT_TYPES.items():
        if name not in existing:
            session.add(EventType(name=name, color=color))
            created += 1
    return created


def seed_demo_lab(session: Session, lab_name: str) -> Lab:
    lab = session.exec(select(Lab).where(Lab.name == lab_name)).first()
    if lab:
        return lab

    lab = Lab(name=lab_name)
    session.add(lab)
    session.flush()  # Get lab.id
    for name in DEMO_MEMBERS:
        session.add(LabMember(lab_id=lab.id, display_name=name))
    for name in DEMO_INSTRUMENTS:
        session.add(Instrument(lab_id=lab.id, name=name))
    return lab


def main():
    parser = argparse.ArgumentParser(description="Seed calendar lookup tables")
    parser.add_argument("--demo-lab", help="Also create a demo lab with this name")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    create_db_and_tables()
    with Session(engine) as session:
        status_count = seed_statuses(session)
        type_count = seed_event_types(session)
        if args.demo_lab:
            lab = seed_demo_lab(session, args.demo_lab)
            logger.info(f"Demo lab ready: {lab.name}")
        session.commit()

    logger.info(f"Seeded {status_count} statuses and {type_count} event types")


if __name__ == "__main__":
    main()
