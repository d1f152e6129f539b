"""
Calendar Parser

iCalendar 文本与数据模型之间的转换 (icalendar)
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, List, Optional

from icalendar import Calendar, Event
from icalendar.prop import vRecur

from .models import (
    CalendarAddress,
    CalendarPayload,
    EventTime,
    ITipMethod,
    NonEventComponent,
    Occurrence,
)
from .protocols import CalendarParseError

logger = logging.getLogger(__name__)

PRODID = "-//isA Platform//iMIP Service//EN"


def parse_calendar(ics_text: str) -> CalendarPayload:
    """Parse a VCALENDAR into occurrences and non-event components"""
    try:
        calendar = Calendar.from_ical(ics_text)
    except ValueError as e:
        logger.warning(f"Failed to parse calendar data: {e}")
        raise CalendarParseError(f"Invalid calendar data: {e}") from e

    components = []
    for component in calendar.subcomponents:
        if component.name == "VEVENT":
            components.append(occurrence_from_component(component))
        else:
            components.append(NonEventComponent(name=component.name, component=component))
    return CalendarPayload(components=components)


def occurrence_from_component(component: Any) -> Occurrence:
    """Build an Occurrence from an icalendar VEVENT"""
    if "DTSTART" not in component:
        raise CalendarParseError("VEVENT without DTSTART")

    return Occurrence(
        uid=str(component.get("UID", "")),
        recurrence_id=_ical_text(component, "RECURRENCE-ID"),
        sequence=int(component["SEQUENCE"]) if "SEQUENCE" in component else None,
        last_modified=_ical_text(component, "LAST-MODIFIED"),
        recurrence_rule=_ical_text(component, "RRULE"),
        exdates=_date_list(component, "EXDATE"),
        rdates=_date_list(component, "RDATE"),
        start=_event_time(component["DTSTART"]),
        end=_event_time(component["DTEND"]) if "DTEND" in component else None,
        duration=component["DURATION"].dt if "DURATION" in component else None,
        summary=_text(component, "SUMMARY"),
        description=_text(component, "DESCRIPTION"),
        location=_text(component, "LOCATION"),
        url=_text(component, "URL"),
        organizer=_address(component["ORGANIZER"]) if "ORGANIZER" in component else None,
        attendees=[_address(a) for a in _as_list(component.get("ATTENDEE"))],
        component=component,
    )


def build_event_component(occurrence: Occurrence) -> Event:
    """VEVENT for an occurrence; the parsed source component is reused when present"""
    if occurrence.component is not None:
        return occurrence.component

    event = Event()
    event.add("uid", occurrence.uid)
    if occurrence.sequence is not None:
        event.add("sequence", occurrence.sequence)
    _add_time(event, "dtstart", occurrence.start)
    if occurrence.end is not None:
        _add_time(event, "dtend", occurrence.end)
    elif occurrence.duration is not None:
        event.add("duration", occurrence.duration)
    if occurrence.recurrence_rule:
        event.add("rrule", vRecur.from_ical(occurrence.recurrence_rule))
    for name, value in (
        ("summary", occurrence.summary),
        ("description", occurrence.description),
        ("location", occurrence.location),
        ("url", occurrence.url),
    ):
        if value:
            event.add(name, value)
    if occurrence.organizer is not None:
        event.add("organizer", occurrence.organizer.uri, parameters=_address_params(occurrence.organizer))
    for attendee in occurrence.attendees:
        event.add("attendee", attendee.uri, parameters=_address_params(attendee))
    return event


def serialize_imip_calendar(
    method: ITipMethod,
    occurrence: Occurrence,
    non_event_components: List[NonEventComponent],
) -> str:
    """VCALENDAR with METHOD, the carried-over components and exactly one VEVENT"""
    calendar = Calendar()
    calendar.add("prodid", PRODID)
    calendar.add("version", "2.0")
    calendar.add("calscale", "GREGORIAN")
    calendar.add("method", method.value)
    for other in non_event_components:
        if other.component is not None:
            calendar.add_component(other.component)
    calendar.add_component(build_event_component(occurrence))
    return calendar.to_ical().decode("utf-8")


# ---- helpers ----

def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _text(component: Any, name: str) -> Optional[str]:
    value = component.get(name)
    if value is None:
        return None
    return str(value)


def _ical_text(component: Any, name: str) -> Optional[str]:
    """Property value exactly as serialized, for textual comparisons"""
    value = component.get(name)
    if value is None:
        return None
    raw = value.to_ical()
    return raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)


def _event_time(prop: Any) -> EventTime:
    value = prop.dt
    tzid = prop.params.get("TZID") if hasattr(prop, "params") else None
    if isinstance(value, datetime) and value.tzinfo is not None and not tzid:
        tzid = _tzinfo_name(value.tzinfo)
    return EventTime(value=value, tzid=str(tzid) if tzid else None)


def _date_list(component: Any, name: str) -> List[EventTime]:
    times = []
    for prop in _as_list(component.get(name)):
        tzid = prop.params.get("TZID") if hasattr(prop, "params") else None
        for item in getattr(prop, "dts", []):
            value = item.dt
            # RDATE periods: only the period start matters for expansion
            if isinstance(value, tuple):
                value = value[0]
            if not isinstance(value, (date, datetime)):
                continue
            times.append(EventTime(value=value, tzid=str(tzid) if tzid else None))
    return times


def _address(prop: Any) -> CalendarAddress:
    params = getattr(prop, "params", {})
    return CalendarAddress(
        uri=str(prop),
        common_name=params.get("CN"),
        partstat=params.get("PARTSTAT"),
        role=params.get("ROLE"),
        rsvp=params.get("RSVP"),
        language=params.get("LANGUAGE"),
    )


def _address_params(address: CalendarAddress) -> dict:
    params = {}
    for key, value in (
        ("CN", address.common_name),
        ("PARTSTAT", address.partstat),
        ("ROLE", address.role),
        ("RSVP", address.rsvp),
        ("LANGUAGE", address.language),
    ):
        if value:
            params[key] = value
    return params


def _add_time(event: Event, name: str, value: EventTime) -> None:
    if isinstance(value.value, datetime) and value.value.tzinfo is None and value.tzid:
        event.add(name, value.value, parameters={"TZID": value.tzid})
    else:
        event.add(name, value.value)


def _tzinfo_name(tz: Any) -> Optional[str]:
    if tz is timezone.utc:
        return "UTC"
    return getattr(tz, "key", None) or getattr(tz, "zone", None)
