"""
Shared Test Fixtures

Centralized factories used across all test layers.

Structure:
    - imip_fixtures.py: iMIP occurrences, payloads, transactions and ICS text
"""

from .imip_fixtures import (
    ATTENDEE_URI,
    FIXED_NOW,
    ORGANIZER_URI,
    SAMPLE_ICS,
    make_attendee,
    make_ics,
    make_occurrence,
    make_organizer,
    make_payload,
    make_time,
    make_timezone_component,
    make_transaction,
    utc,
)

__all__ = [
    "ATTENDEE_URI",
    "FIXED_NOW",
    "ORGANIZER_URI",
    "SAMPLE_ICS",
    "make_attendee",
    "make_ics",
    "make_occurrence",
    "make_organizer",
    "make_payload",
    "make_time",
    "make_timezone_component",
    "make_transaction",
    "utc",
]
