from labchat.models.event import Event, EventAssignment
from labchat.models.lab import Instrument, Lab, LabMember
from labchat.models.lookup import EventStatus, EventType

__all__ = [
    "Event",
    "EventAssignment",
    "EventStatus",
    "EventType",
    "Instrument",
    "Lab",
    "LabMember",
]
