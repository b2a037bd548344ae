"""Event type and event status lookup tables."""

from sqlmodel import Field, SQLModel


class EventType(SQLModel, table=True):
    """A category of calendar event (booking, task, meeting, ...).

    Attributes:
        id: Integer primary key.
        name: Unique type name. Status rules and fallback colours are keyed
            on substrings of this name.
        color: Optional hex colour; when unset the calendar falls back to a
            colour chosen from the name.
    """
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    color: str | None = None


class EventStatus(SQLModel, table=True):
    """A lifecycle state of an event (booked, scheduled, completed, ...)."""
    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    color: str | None = None
    description: str | None = None
