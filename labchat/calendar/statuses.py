"""Event status rules.

Booking-type events (any type whose name contains "booking") move through
booked -> cancelled / elapsed. Every other type moves through
scheduled -> completed / cancelled / elapsed.
"""

BOOKED = "booked"
SCHEDULED = "scheduled"
CANCELLED = "cancelled"
COMPLETED = "completed"
ELAPSED = "elapsed"

ALL_STATUSES = (BOOKED, SCHEDULED, CANCELLED, COMPLETED, ELAPSED)

# Statuses the elapsed sweep never overwrites
FINAL_STATUSES = frozenset({CANCELLED, COMPLETED, ELAPSED})

BOOKING_STATUSES = frozenset({BOOKED, CANCELLED, ELAPSED})
TASK_STATUSES = frozenset({SCHEDULED, COMPLETED, CANCELLED, ELAPSED})


def is_booking_type(type_name: str | None) -> bool:
    return "booking" in (type_name or "").lower()


def default_status_for_type(type_name: str | None) -> str:
    """Status name a new event of this type starts in."""
    return BOOKED if is_booking_type(type_name) else SCHEDULED


def allowed_statuses(type_name: str | None) -> frozenset[str]:
    return BOOKING_STATUSES if is_booking_type(type_name) else TASK_STATUSES


def is_valid_status_change(type_name: str | None, new_status: str) -> bool:
    return new_status in allowed_statuses(type_name)
