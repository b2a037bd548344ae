"""Lab, member and instrument models.

These tables are owned by the lab administration screens. The calendar
only reads them: members appear as event assigners and assignees, and
instruments are what equipment bookings reserve.
"""

from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from labchat.models.event import Event


class Lab(SQLModel, table=True):
    """A laboratory whose members share one calendar.

    Attributes:
        id: Integer primary key.
        name: Display name of the lab.
        members: People belonging to the lab.
        instruments: Bookable equipment in the lab.
    """
    id: int | None = Field(default=None, primary_key=True)
    name: str

    members: list["LabMember"] = Relationship(back_populates="lab")
    instruments: list["Instrument"] = Relationship(back_populates="lab")


class LabMember(SQLModel, table=True):
    """A person's membership in a lab.

    Event assigners and assignees are lab members, not bare users, so the
    same person has a different member id in every lab they belong to.

    Attributes:
        id: Integer primary key (the "member id" used by the calendar).
        lab_id: Foreign key to the Lab.
        display_name: Name shown on events and in the user selector.
        picture_path: Optional avatar path.
    """
    id: int | None = Field(default=None, primary_key=True)
    lab_id: int = Field(foreign_key="lab.id", index=True)
    display_name: str
    picture_path: str | None = None

    lab: Optional[Lab] = Relationship(back_populates="members")
    assigned_events: list["Event"] = Relationship(back_populates="assigner")


class Instrument(SQLModel, table=True):
    """A piece of lab equipment that can be booked.

    Attributes:
        id: Integer primary key.
        lab_id: Foreign key to the owning Lab.
        name: Instrument name; may be missing for legacy rows.
    """
    id: int | None = Field(default=None, primary_key=True)
    lab_id: int = Field(foreign_key="lab.id", index=True)
    name: str | None = None

    lab: Optional[Lab] = Relationship(back_populates="instruments")
