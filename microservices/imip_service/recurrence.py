"""
Recurrence Resolver

计算事件 (含重复规则) 的最后一次发生时间

The last occurrence decides whether a notification is stale and bounds the
validity of invitation response tokens. Expansion of recurrence rules is
capped at MAX_DATE so an unbounded series never iterates forever.
"""

import logging
import re
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Dict, Iterable, Iterator

from dateutil.rrule import rruleset, rrulestr

from .models import CalendarPayload, EventTime, Occurrence

logger = logging.getLogger(__name__)

MAX_DATE = datetime(2038, 1, 1, tzinfo=timezone.utc)

_UNTIL_PATTERN = re.compile(r"UNTIL=([0-9]{8}(?:T[0-9]{6}Z?)?)", re.IGNORECASE)


def resolve_end(occurrence: Occurrence) -> EventTime:
    """End of a single instance: DTEND, then DTSTART + DURATION, then +1 day for dates, then DTSTART"""
    if occurrence.end is not None:
        return occurrence.end
    if occurrence.duration is not None:
        return occurrence.start.shifted(occurrence.duration)
    if occurrence.start.is_all_day:
        return occurrence.start.shifted(timedelta(days=1))
    return occurrence.start


def parse_recurrence_id(value: str, reference: EventTime) -> EventTime:
    """RECURRENCE-ID text value as an EventTime in the reference's timezone"""
    text = value.strip()
    if len(text) == 8:
        return EventTime(value=datetime.strptime(text, "%Y%m%d").date())
    if text.upper().endswith("Z"):
        parsed = datetime.strptime(text[:-1], "%Y%m%dT%H%M%S")
        return EventTime(value=parsed.replace(tzinfo=timezone.utc), tzid="UTC")
    return EventTime(value=datetime.strptime(text, "%Y%m%dT%H%M%S"), tzid=reference.tzid)


class RecurrenceResolver:
    """Computes the instant at which the final instance of an event ends"""

    def __init__(self, default_timezone: tzinfo = timezone.utc, max_date: datetime = MAX_DATE):
        """
        Args:
            default_timezone: Timezone for floating times and all-day dates
            max_date: Expansion horizon, returned for unbounded series
        """
        self.default_timezone = default_timezone
        self.max_date = max_date

    def last_occurrence_of(self, payload: CalendarPayload) -> datetime:
        """Last occurrence of the series described by an iTIP payload"""
        occurrences = payload.occurrences
        if not occurrences:
            raise ValueError("Calendar payload has no event component")

        master = next((o for o in occurrences if o.recurrence_id is None), occurrences[0])
        overrides = [
            o for o in occurrences
            if o is not master and o.uid == master.uid and o.recurrence_id is not None
        ]
        return self.compute_last_occurrence(master, overrides)

    def compute_last_occurrence(
        self,
        occurrence: Occurrence,
        overrides: Iterable[Occurrence] = (),
    ) -> datetime:
        """
        Compute the end of the last instance of an event.

        Args:
            occurrence: Single event or series master
            overrides: Modified instances of the series (RECURRENCE-ID set)

        Returns:
            Timezone-aware instant, never earlier than the event start
        """
        start_instant = self._instant(occurrence.start)

        if not occurrence.is_recurring:
            return max(self._instant(resolve_end(occurrence)), start_instant)

        if self._is_infinite(occurrence.recurrence_rule):
            return max(self.max_date, start_instant)

        try:
            instances = self._expand(occurrence)
        except (ValueError, TypeError) as e:
            logger.warning(
                f"Unable to expand RRULE '{occurrence.recurrence_rule}' of {occurrence.uid}: {e}"
            )
            return max(self._instant(resolve_end(occurrence)), start_instant)

        length = self._instance_length(occurrence)
        override_ends = self._override_ends(occurrence, overrides)

        last_end = None
        for instance_start in instances:
            instant = self._to_aware(instance_start)
            end = override_ends.get(instant)
            if end is None:
                end = (instant.astimezone(timezone.utc) + length)
            if end >= self.max_date:
                return max(self.max_date, start_instant)
            last_end = end

        if last_end is None:
            last_end = self._instant(resolve_end(occurrence))
        return max(last_end, start_instant)

    # ---- helpers ----

    def _instant(self, value: EventTime) -> datetime:
        return value.to_instant(self.default_timezone)

    def _to_aware(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=self.default_timezone)
        return value

    def _instance_length(self, occurrence: Occurrence) -> timedelta:
        return self._instant(resolve_end(occurrence)) - self._instant(occurrence.start)

    @staticmethod
    def _rule_parts(rule: str) -> Dict[str, str]:
        parts = {}
        for part in rule.split(";"):
            key, sep, value = part.partition("=")
            if sep:
                parts[key.strip().upper()] = value.strip()
        return parts

    def _is_infinite(self, rule: str) -> bool:
        parts = self._rule_parts(rule)
        return "COUNT" not in parts and "UNTIL" not in parts

    def _rule_start(self, start: EventTime) -> datetime:
        """DTSTART as handed to dateutil: aware when the timezone is known, naive otherwise"""
        return start.as_datetime()

    def _align(self, value: EventTime, dtstart: datetime) -> datetime:
        """Bring EXDATE / RDATE values to the same awareness as DTSTART"""
        moment = value.as_datetime()
        if dtstart.tzinfo is not None and moment.tzinfo is None:
            return moment.replace(tzinfo=dtstart.tzinfo)
        if dtstart.tzinfo is None and moment.tzinfo is not None:
            return moment.astimezone(self.default_timezone).replace(tzinfo=None)
        return moment

    def _normalize_until(self, rule: str, dtstart: datetime) -> str:
        """dateutil needs UNTIL in UTC for aware DTSTART and naive otherwise"""

        def replace(match: "re.Match") -> str:
            raw = match.group(1).upper()
            if len(raw) == 8:
                until = datetime.combine(datetime.strptime(raw, "%Y%m%d").date(), time(23, 59, 59))
            elif raw.endswith("Z"):
                until = datetime.strptime(raw[:-1], "%Y%m%dT%H%M%S").replace(tzinfo=timezone.utc)
            else:
                until = datetime.strptime(raw, "%Y%m%dT%H%M%S")

            if dtstart.tzinfo is not None:
                if until.tzinfo is None:
                    until = until.replace(tzinfo=dtstart.tzinfo)
                return "UNTIL=" + until.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
            if until.tzinfo is not None:
                until = until.astimezone(self.default_timezone).replace(tzinfo=None)
            return "UNTIL=" + until.strftime("%Y%m%dT%H%M%S")

        return _UNTIL_PATTERN.sub(replace, rule)

    def _expand(self, occurrence: Occurrence) -> Iterator[datetime]:
        dtstart = self._rule_start(occurrence.start)
        rule = self._normalize_until(occurrence.recurrence_rule, dtstart)

        rules = rruleset()
        rules.rrule(rrulestr(rule, dtstart=dtstart))
        for exdate in occurrence.exdates:
            rules.exdate(self._align(exdate, dtstart))
        for rdate in occurrence.rdates:
            rules.rdate(self._align(rdate, dtstart))
        return iter(rules)

    def _override_ends(
        self, occurrence: Occurrence, overrides: Iterable[Occurrence]
    ) -> Dict[datetime, datetime]:
        ends = {}
        for override in overrides:
            if not override.recurrence_id:
                continue
            try:
                recurrence_id = parse_recurrence_id(override.recurrence_id, occurrence.start)
            except ValueError:
                logger.debug(f"Ignoring unparsable RECURRENCE-ID {override.recurrence_id}")
                continue
            key = self._instant(recurrence_id)
            ends[key] = self._instant(resolve_end(override))
        return ends


__all__ = ["MAX_DATE", "RecurrenceResolver", "resolve_end", "parse_recurrence_id"]
