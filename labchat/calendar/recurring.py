"""Recurring event expansion.

A recurring template is a draft event plus a frequency and a repetition
count. Expanding it yields one independent creation payload per occurrence.
Nothing here talks to the database: the payloads are handed to
``labchat.calendar.service.create_recurring_events`` which submits them
and accounts for each one.

Monthly occurrences are computed from the first start date, not from the
previous occurrence, and clamp to the last day of short months:
Jan 31 -> Feb 28 (or 29) -> Mar 31 -> Apr 30.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID, uuid4

from dateutil.relativedelta import relativedelta

DEFAULT_MAX_REPETITIONS = 365
DEFAULT_PREVIEW_LIMIT = 10


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class RecurrenceValidationError(ValueError):
    """A recurring template was rejected before anything was submitted.

    Attributes:
        errors: Mapping of field name to a user-facing message.
    """

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{name}: {message}" for name, message in errors.items()))


@dataclass(frozen=True)
class EventCreate:
    """Everything needed to create one event."""
    lab_id: int
    member_id: int
    title: str
    type_id: int
    start_time: datetime
    end_time: datetime
    description: str | None = None
    instrument_id: int | None = None
    status_id: int | None = None
    assigned_member_ids: tuple[int, ...] = ()
    series_id: UUID | None = None


@dataclass
class RecurringTemplate:
    """A draft event to be repeated.

    ``start`` and ``end`` carry both the calendar date and the time of day
    of the first occurrence; every later occurrence keeps the same times and
    the same duration.
    """
    lab_id: int
    member_id: int
    title: str
    type_id: int
    start: datetime
    end: datetime
    frequency: Frequency | str
    repetitions: int
    description: str | None = None
    instrument_id: int | None = None
    status_id: int | None = None
    assigned_member_ids: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class Occurrence:
    index: int
    start: datetime
    end: datetime


@dataclass(frozen=True)
class RecurrencePreview:
    """What the add-event dialog lists before submitting."""
    shown: list[Occurrence]
    remaining: int

    @property
    def total(self) -> int:
        return len(self.shown) + self.remaining


def validate_template(template: RecurringTemplate, max_repetitions: int = DEFAULT_MAX_REPETITIONS) -> Frequency:
    """
    Check a template before expansion.

    Returns the parsed Frequency. Raises RecurrenceValidationError with one
    message per offending field.
    """
    errors: dict[str, str] = {}

    frequency = None
    try:
        frequency = Frequency(template.frequency)
    except ValueError:
        errors["frequency"] = "Invalid frequency. Must be daily, weekly, or monthly"

    if not isinstance(template.repetitions, int) or isinstance(template.repetitions, bool):
        errors["repetitions"] = "Repetitions must be a whole number"
    elif template.repetitions < 1:
        errors["repetitions"] = "Must create at least 1 event"
    elif template.repetitions > max_repetitions:
        errors["repetitions"] = f"Cannot create more than {max_repetitions} events"

    if not template.title or not template.title.strip():
        errors["title"] = "Title is required"

    if template.end <= template.start:
        errors["end"] = "End time must be after start time"

    if errors:
        raise RecurrenceValidationError(errors)
    return frequency


def expand_start_dates(start: datetime, frequency: Frequency | str, repetitions: int) -> list[datetime]:
    """Start dates of every occurrence, the first one being ``start`` itself."""
    frequency = Frequency(frequency)

    if frequency is Frequency.DAILY:
        return [start + timedelta(days=i) for i in range(repetitions)]
    if frequency is Frequency.WEEKLY:
        return [start + timedelta(weeks=i) for i in range(repetitions)]
    return [start + relativedelta(months=i) for i in range(repetitions)]


def expand_occurrences(template: RecurringTemplate, max_repetitions: int = DEFAULT_MAX_REPETITIONS) -> list[Occurrence]:
    frequency = validate_template(template, max_repetitions)
    duration = template.end - template.start
    return [
        Occurrence(index=i, start=start, end=start + duration)
        for i, start in enumerate(expand_start_dates(template.start, frequency, template.repetitions))
    ]


def expand_template(
    template: RecurringTemplate,
    series_id: UUID | None = None,
    number_titles: bool = False,
    max_repetitions: int = DEFAULT_MAX_REPETITIONS,
) -> list[EventCreate]:
    """
    Expand a template into one creation payload per occurrence.

    All payloads share title, description, type, instrument, status,
    assignees and a series id; only the start and end differ. With
    ``number_titles`` the titles get a " (i/N)" suffix when N > 1.
    """
    occurrences = expand_occurrences(template, max_repetitions)
    series_id = series_id or uuid4()
    total = len(occurrences)

    base = EventCreate(
        lab_id=template.lab_id,
        member_id=template.member_id,
        title=template.title.strip(),
        type_id=template.type_id,
        start_time=template.start,
        end_time=template.end,
        description=template.description,
        instrument_id=template.instrument_id,
        status_id=template.status_id,
        assigned_member_ids=tuple(template.assigned_member_ids),
        series_id=series_id,
    )

    payloads = []
    for occurrence in occurrences:
        title = base.title
        if number_titles and total > 1:
            title = f"{title} ({occurrence.index + 1}/{total})"
        payloads.append(
            replace(base, title=title, start_time=occurrence.start, end_time=occurrence.end)
        )
    return payloads


def preview_occurrences(
    template: RecurringTemplate,
    limit: int = DEFAULT_PREVIEW_LIMIT,
    max_repetitions: int = DEFAULT_MAX_REPETITIONS,
) -> RecurrencePreview:
    """The first ``limit`` occurrences plus a count of the rest."""
    occurrences = expand_occurrences(template, max_repetitions)
    return RecurrencePreview(shown=occurrences[:limit], remaining=max(len(occurrences) - limit, 0))
