"""
When String Formatter

生成事件时间段的可读描述
"""

from datetime import date, datetime, timedelta

from .models import EventTime, Occurrence
from .protocols import LocalizerProtocol
from .recurrence import resolve_end


class WhenStringFormatter:
    """Human readable, timezone and all-day aware time span of one instance"""

    def format(self, occurrence: Occurrence, l10n: LocalizerProtocol) -> str:
        start = occurrence.start
        end = resolve_end(occurrence)

        if start.is_all_day:
            return self._format_all_day(start, end, l10n)
        return self._format_timed(start, end, l10n)

    def _format_all_day(self, start: EventTime, end: EventTime, l10n: LocalizerProtocol) -> str:
        start_date = _as_date(start.value)
        end_date = _as_date(end.value)

        if (end_date - start_date).days <= 1:
            return l10n.format_date(start_date, "medium")

        # DTEND is exclusive: 2024-05-01 to 2024-05-05 is shown as May 1 - May 4
        end_date -= timedelta(days=1)
        return f"{l10n.format_date(start_date, 'medium')} - {l10n.format_date(end_date, 'medium')}"

    def _format_timed(self, start: EventTime, end: EventTime, l10n: LocalizerProtocol) -> str:
        start_dt = start.as_datetime()
        end_dt = end.as_datetime()
        start_tz = None if start.is_floating else start.tzid
        end_tz = None if end.is_floating else end.tzid

        locale_start = self._full(start_dt, l10n)

        # different timezones: always show both sides in full
        if start_tz != end_tz:
            return (
                f"{locale_start}{_tz_suffix(start_tz)} - "
                f"{self._full(end_dt, l10n)}{_tz_suffix(end_tz)}"
            )

        if start_dt.date() == end_dt.date():
            locale_end = l10n.format_time(end_dt, "short")
        else:
            locale_end = self._full(end_dt, l10n)

        return f"{locale_start} - {locale_end}{_tz_suffix(start_tz)}"

    @staticmethod
    def _full(value: datetime, l10n: LocalizerProtocol) -> str:
        return f"{l10n.format_weekday(value, 'abbreviated')}, {l10n.format_datetime(value, 'medium|short')}"


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _tz_suffix(tzid) -> str:
    return f" ({tzid})" if tzid else ""


__all__ = ["WhenStringFormatter"]
