"""Tests for recurring event expansion."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from labchat.calendar.recurring import (
    Frequency,
    RecurrenceValidationError,
    RecurringTemplate,
    expand_start_dates,
    expand_template,
    preview_occurrences,
    validate_template,
)


def make_template(**overrides) -> RecurringTemplate:
    values = {
        "lab_id": 1,
        "member_id": 1,
        "title": "Lab meeting",
        "type_id": 1,
        "start": datetime(2025, 3, 5, 9, 0),
        "end": datetime(2025, 3, 5, 10, 30),
        "frequency": "weekly",
        "repetitions": 4,
        "assigned_member_ids": [2, 3],
    }
    values.update(overrides)
    return RecurringTemplate(**values)


class TestStartDates:
    """Tests for expand_start_dates."""

    def test_daily_from_new_year(self):
        """Test five daily occurrences keep their time of day."""
        starts = expand_start_dates(datetime(2025, 1, 1, 14, 15), "daily", 5)
        assert [s.day for s in starts] == [1, 2, 3, 4, 5]
        assert all(s.time() == datetime(2025, 1, 1, 14, 15).time() for s in starts)

    def test_weekly_from_monday(self):
        """Test three weekly occurrences from a Monday are all Mondays."""
        starts = expand_start_dates(datetime(2025, 3, 3, 9, 0), Frequency.WEEKLY, 3)
        assert all(s.weekday() == 0 for s in starts)
        assert starts[2] - starts[0] == timedelta(days=14)

    def test_daily(self):
        """Test daily occurrences are one day apart."""
        starts = expand_start_dates(datetime(2025, 3, 30, 9, 0), Frequency.DAILY, 4)
        assert starts == [
            datetime(2025, 3, 30, 9, 0),
            datetime(2025, 3, 31, 9, 0),
            datetime(2025, 4, 1, 9, 0),
            datetime(2025, 4, 2, 9, 0),
        ]

    def test_weekly(self):
        """Test weekly occurrences are seven days apart."""
        starts = expand_start_dates(datetime(2025, 12, 24, 9, 0), "weekly", 3)
        assert starts == [
            datetime(2025, 12, 24, 9, 0),
            datetime(2025, 12, 31, 9, 0),
            datetime(2026, 1, 7, 9, 0),
        ]

    def test_monthly_clamps_to_month_end(self):
        """Test a Jan 31 series clamps in short months and returns to the 31st."""
        starts = expand_start_dates(datetime(2025, 1, 31, 9, 0), "monthly", 4)
        assert [s.date().isoformat() for s in starts] == [
            "2025-01-31",
            "2025-02-28",
            "2025-03-31",
            "2025-04-30",
        ]

    def test_monthly_leap_year(self):
        """Test February 29 is used in a leap year."""
        starts = expand_start_dates(datetime(2024, 1, 31, 9, 0), "monthly", 2)
        assert starts[1] == datetime(2024, 2, 29, 9, 0)

    def test_first_occurrence_is_template_start(self):
        """Test the first start is always the template start."""
        start = datetime(2025, 3, 5, 9, 0)
        for frequency in Frequency:
            assert expand_start_dates(start, frequency, 1) == [start]


class TestValidateTemplate:
    """Tests for validate_template."""

    def test_valid(self):
        """Test a valid template returns its parsed frequency."""
        assert validate_template(make_template()) is Frequency.WEEKLY

    def test_zero_repetitions(self):
        """Test zero repetitions is rejected."""
        with pytest.raises(RecurrenceValidationError) as exc_info:
            validate_template(make_template(repetitions=0))
        assert exc_info.value.errors == {"repetitions": "Must create at least 1 event"}

    def test_too_many_repetitions(self):
        """Test the repetition cap is enforced."""
        with pytest.raises(RecurrenceValidationError) as exc_info:
            validate_template(make_template(repetitions=366), max_repetitions=365)
        assert exc_info.value.errors["repetitions"] == "Cannot create more than 365 events"

    def test_collects_every_field_error(self):
        """Test every invalid field is reported at once."""
        template = make_template(
            frequency="yearly",
            title="   ",
            end=datetime(2025, 3, 5, 9, 0),
        )
        with pytest.raises(RecurrenceValidationError) as exc_info:
            validate_template(template)
        assert set(exc_info.value.errors) == {"frequency", "title", "end"}

    def test_boolean_repetitions_rejected(self):
        """Test a boolean is not accepted as a repetition count."""
        with pytest.raises(RecurrenceValidationError) as exc_info:
            validate_template(make_template(repetitions=True))
        assert "repetitions" in exc_info.value.errors


class TestExpandTemplate:
    """Tests for expand_template."""

    def test_payloads_share_everything_but_times(self):
        """Test occurrences copy the template and keep its duration."""
        payloads = expand_template(make_template(description="Weekly sync"))

        assert len(payloads) == 4
        assert len({p.series_id for p in payloads}) == 1
        for payload in payloads:
            assert payload.title == "Lab meeting"
            assert payload.description == "Weekly sync"
            assert payload.assigned_member_ids == (2, 3)
            assert payload.end_time - payload.start_time == timedelta(hours=1, minutes=30)
        assert payloads[3].start_time == datetime(2025, 3, 26, 9, 0)

    def test_given_series_id(self):
        """Test a caller-supplied series id is used."""
        series_id = uuid4()
        payloads = expand_template(make_template(repetitions=2), series_id=series_id)
        assert all(p.series_id == series_id for p in payloads)

    def test_number_titles(self):
        """Test numbered titles get an (i/N) suffix."""
        payloads = expand_template(make_template(repetitions=3), number_titles=True)
        assert [p.title for p in payloads] == [
            "Lab meeting (1/3)",
            "Lab meeting (2/3)",
            "Lab meeting (3/3)",
        ]

    def test_number_titles_single_occurrence(self):
        """Test a single occurrence keeps its plain title."""
        payloads = expand_template(make_template(repetitions=1), number_titles=True)
        assert payloads[0].title == "Lab meeting"

    def test_invalid_template_expands_nothing(self):
        """Test expansion raises before producing any payload."""
        with pytest.raises(RecurrenceValidationError):
            expand_template(make_template(frequency="hourly"))


class TestPreview:
    """Tests for preview_occurrences."""

    def test_preview_limit(self):
        """Test only the first occurrences are shown and the rest counted."""
        preview = preview_occurrences(make_template(frequency="daily", repetitions=30), limit=10)
        assert len(preview.shown) == 10
        assert preview.remaining == 20
        assert preview.total == 30
        assert preview.shown[9].start == datetime(2025, 3, 14, 9, 0)

    def test_preview_short_series(self):
        """Test a short series shows every occurrence."""
        preview = preview_occurrences(make_template(repetitions=2), limit=10)
        assert len(preview.shown) == 2
        assert preview.remaining == 0
