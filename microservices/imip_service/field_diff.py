"""
Field Diff Presenter

构建邮件正文字段 (标题、时间、地点、链接、描述) 及其变更标注
"""

from html import escape
from typing import Dict, Optional

from .models import CalendarAddress, FieldValue, Occurrence
from .protocols import LocalizerProtocol
from .when_formatter import WhenStringFormatter

STRIKETHROUGH = "<span style='text-decoration: line-through'>%s</span>"
CHANGED = STRIKETHROUGH + "<br />%s"
ACCEPTED_MARK = " ✔︎"

FIELDS = ("when", "title", "description", "url", "location")


class FieldDiffPresenter:
    """Per-field plain and change annotated values for the email body"""

    def __init__(self, when_formatter: Optional[WhenStringFormatter] = None):
        self.when_formatter = when_formatter or WhenStringFormatter()

    def plain_fields(self, occurrence: Occurrence, l10n: LocalizerProtocol) -> Dict[str, str]:
        """Plain text value of every field; only the title has a placeholder"""
        return {
            "when": self.when_formatter.format(occurrence, l10n),
            "title": occurrence.summary or l10n.translate("Untitled event"),
            "description": occurrence.description or "",
            "url": occurrence.url or "",
            "location": occurrence.location or "",
        }

    def build_changed_fields(
        self,
        new: Occurrence,
        l10n: LocalizerProtocol,
        old: Optional[Occurrence] = None,
    ) -> Dict[str, FieldValue]:
        """Update mode: changed fields show the struck-through old value followed by the new one"""
        new_plain = self.plain_fields(new, l10n)
        old_plain = self.plain_fields(old, l10n) if old is not None else None

        fields = {}
        for name in FIELDS:
            value = new_plain[name]
            html = _html(name, value)
            if old_plain is not None:
                previous = old_plain[name]
                if previous != value and previous != "":
                    html = CHANGED % (escape(previous), html)
            fields[name] = FieldValue(html=html, plain=value)
        return fields

    def build_cancelled_fields(self, occurrence: Occurrence, l10n: LocalizerProtocol) -> Dict[str, FieldValue]:
        """Cancellation mode: every non-empty field is struck through"""
        fields = {}
        for name, value in self.plain_fields(occurrence, l10n).items():
            html = STRIKETHROUGH % _html(name, value) if value else ""
            fields[name] = FieldValue(html=html, plain=value)
        return fields

    def build_attendee_fields(self, occurrence: Occurrence, enabled: bool) -> Dict[str, FieldValue]:
        """
        Organizer and attendee identity lines.

        Nothing is returned unless listing attendees is enabled.
        """
        if not enabled:
            return {}

        fields = {}
        if occurrence.organizer is not None:
            fields["organizer"] = _identity(occurrence.organizer)

        if occurrence.attendees:
            lines = [_identity(attendee) for attendee in occurrence.attendees]
            fields["attendees"] = FieldValue(
                html="<br/>".join(line.html for line in lines),
                plain="\n".join(line.plain for line in lines),
            )
        return fields


def _html(name: str, value: str) -> str:
    if not value:
        return ""
    if name == "url":
        return '<a href="%s">%s</a>' % (escape(value), escape(value))
    return escape(value)


def _identity(address: CalendarAddress) -> FieldValue:
    email = address.email
    name = address.common_name
    html = '<a href="%s">%s</a>' % (escape(address.uri), escape(name or email))
    plain = f"{name} <{email}>" if name else email
    if address.has_accepted:
        html += ACCEPTED_MARK
        plain += ACCEPTED_MARK
    return FieldValue(html=html, plain=plain)


__all__ = ["FieldDiffPresenter", "FIELDS"]
