"""
Unit Tests for the When String Formatter
"""

from datetime import date, datetime, timedelta

import pytest

from microservices.imip_service.models import Occurrence
from microservices.imip_service.when_formatter import WhenStringFormatter
from tests.fixtures import make_time, utc

pytestmark = [pytest.mark.unit]

BERLIN = "Europe/Berlin"


@pytest.fixture
def formatter():
    return WhenStringFormatter()


def _event(start, end=None, **kwargs) -> Occurrence:
    return Occurrence(uid="when-1", start=start, end=end, **kwargs)


class TestAllDay:

    def test_single_day(self, formatter, l10n):
        occurrence = _event(make_time(date(2024, 5, 1)), make_time(date(2024, 5, 2)))
        assert formatter.format(occurrence, l10n) == "May 1, 2024"

    def test_single_day_without_end(self, formatter, l10n):
        occurrence = _event(make_time(date(2024, 5, 1)))
        assert formatter.format(occurrence, l10n) == "May 1, 2024"

    def test_multi_day_end_is_exclusive(self, formatter, l10n):
        occurrence = _event(make_time(date(2024, 5, 1)), make_time(date(2024, 5, 5)))
        assert formatter.format(occurrence, l10n) == "May 1, 2024 - May 4, 2024"

    def test_end_equal_to_start_shows_single_date(self, formatter, l10n):
        occurrence = _event(make_time(date(2024, 5, 1)), make_time(date(2024, 5, 1)))
        assert formatter.format(occurrence, l10n) == "May 1, 2024"

    def test_end_before_start_shows_single_date(self, formatter, l10n):
        occurrence = _event(make_time(date(2024, 5, 3)), make_time(date(2024, 5, 1)))
        assert formatter.format(occurrence, l10n) == "May 3, 2024"

    def test_german(self, formatter, l10n_de):
        occurrence = _event(make_time(date(2024, 5, 1)))
        assert formatter.format(occurrence, l10n_de) == "01.05.2024"


class TestTimed:

    def test_same_day_same_timezone(self, formatter, l10n):
        occurrence = _event(
            make_time(datetime(2024, 5, 1, 10, 0), BERLIN),
            make_time(datetime(2024, 5, 1, 11, 30), BERLIN),
        )
        assert formatter.format(occurrence, l10n) == (
            "Wed, May 1, 2024, 10:00 AM - 11:30 AM (Europe/Berlin)"
        )

    def test_different_days(self, formatter, l10n):
        occurrence = _event(
            make_time(datetime(2024, 5, 1, 10, 0), BERLIN),
            make_time(datetime(2024, 5, 2, 9, 0), BERLIN),
        )
        assert formatter.format(occurrence, l10n) == (
            "Wed, May 1, 2024, 10:00 AM - Thu, May 2, 2024, 9:00 AM (Europe/Berlin)"
        )

    def test_different_timezones(self, formatter, l10n):
        occurrence = _event(
            make_time(datetime(2024, 5, 1, 10, 0), BERLIN),
            make_time(datetime(2024, 5, 1, 6, 0), "America/New_York"),
        )
        assert formatter.format(occurrence, l10n) == (
            "Wed, May 1, 2024, 10:00 AM (Europe/Berlin) - "
            "Wed, May 1, 2024, 6:00 AM (America/New_York)"
        )

    def test_floating_time_has_no_timezone(self, formatter, l10n):
        occurrence = _event(
            make_time(datetime(2024, 5, 1, 10, 0)),
            make_time(datetime(2024, 5, 1, 11, 0)),
        )
        assert formatter.format(occurrence, l10n) == "Wed, May 1, 2024, 10:00 AM - 11:00 AM"

    def test_duration(self, formatter, l10n):
        occurrence = _event(make_time(utc(2024, 5, 1, 10, 0)), duration=timedelta(hours=2))
        assert formatter.format(occurrence, l10n) == "Wed, May 1, 2024, 10:00 AM - 12:00 PM (UTC)"

    def test_german_same_day(self, formatter, l10n_de):
        occurrence = _event(
            make_time(datetime(2024, 5, 1, 10, 0), BERLIN),
            make_time(datetime(2024, 5, 1, 11, 30), BERLIN),
        )
        assert formatter.format(occurrence, l10n_de) == (
            "Mi., 01.05.2024, 10:00 - 11:30 (Europe/Berlin)"
        )
