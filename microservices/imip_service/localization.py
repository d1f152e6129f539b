"""
Localization

邮件文本翻译与日期格式化

Built-in locales cover English and German. Unknown languages fall back to
English formatting with untranslated message ids.
"""

from datetime import date, datetime
from typing import Dict, Optional


_MONTHS = {
    "en": ["January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December"],
    "de": ["Januar", "Februar", "März", "April", "Mai", "Juni", "Juli",
           "August", "September", "Oktober", "November", "Dezember"],
}

_WEEKDAYS = {
    "en": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
    "de": ["Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag"],
}

_WEEKDAYS_ABBREVIATED = {
    "en": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
    "de": ["Mo.", "Di.", "Mi.", "Do.", "Fr.", "Sa.", "So."],
}

# TRANSLATORS: keys are the English message ids used by the iMIP emails
CATALOGS: Dict[str, Dict[str, str]] = {
    "de": {
        "Untitled event": "Unbenannter Termin",
        "Invitation: %s": "Einladung: %s",
        "Re: %s": "Re: %s",
        "Cancelled: %s": "Abgesagt: %s",
        "%s would like to invite you to \"%s\"": "%s möchte Sie zu \"%s\" einladen",
        "\"%s\" has been canceled": "\"%s\" wurde abgesagt",
        "%s has accepted your invitation": "%s hat Ihre Einladung angenommen",
        "%s has tentatively accepted your invitation": "%s hat Ihre Einladung vorläufig angenommen",
        "%s has declined your invitation": "%s hat Ihre Einladung abgelehnt",
        "%s has responded your invitation": "%s hat auf Ihre Einladung geantwortet",
        "%s via %s": "%s über %s",
        "Title:": "Titel:",
        "Time:": "Zeit:",
        "Location:": "Ort:",
        "Link:": "Link:",
        "Organizer:": "Organisator:",
        "Attendees:": "Teilnehmer:",
        "Description:": "Beschreibung:",
        "Accept": "Annehmen",
        "Decline": "Ablehnen",
        "More options …": "Weitere Optionen …",
        "More options at %s": "Weitere Optionen unter %s",
    },
}


class Localizer:
    """Formats dates and translates message ids for one language"""

    def __init__(self, language: str = "en", catalog: Optional[Dict[str, str]] = None):
        self.language = language
        self._base = language.split("_")[0].split("-")[0].lower()
        if self._base not in _MONTHS:
            self._base = "en"
        self.catalog = catalog if catalog is not None else CATALOGS.get(self._base, {})

    def translate(self, text: str, *args: str) -> str:
        translated = self.catalog.get(text, text)
        if args:
            return translated % tuple(args)
        return translated

    def format_weekday(self, value: date, width: str = "abbreviated") -> str:
        if width == "abbreviated":
            return _WEEKDAYS_ABBREVIATED[self._base][value.weekday()]
        name = _WEEKDAYS[self._base][value.weekday()]
        if width == "narrow":
            return name[0]
        return name

    def format_date(self, value: date, width: str = "medium") -> str:
        if self._base == "de":
            if width == "short":
                return value.strftime("%d.%m.%y")
            if width == "medium":
                return value.strftime("%d.%m.%Y")
            return f"{value.day}. {_MONTHS['de'][value.month - 1]} {value.year}"

        if width == "short":
            return f"{value.month}/{value.day}/{value.year % 100:02d}"
        month = _MONTHS["en"][value.month - 1]
        if width == "medium":
            month = month[:3]
        return f"{month} {value.day}, {value.year}"

    def format_time(self, value: datetime, width: str = "short") -> str:
        if self._base == "de":
            return value.strftime("%H:%M" if width == "short" else "%H:%M:%S")
        hour = value.hour % 12 or 12
        suffix = "AM" if value.hour < 12 else "PM"
        if width == "short":
            return f"{hour}:{value.minute:02d} {suffix}"
        return f"{hour}:{value.minute:02d}:{value.second:02d} {suffix}"

    def format_datetime(self, value: datetime, width: str = "medium|short") -> str:
        date_width, _, time_width = width.partition("|")
        time_width = time_width or date_width
        return f"{self.format_date(value, date_width)}, {self.format_time(value, time_width)}"


class LocalizerFactory:
    """Caches one Localizer per language"""

    def __init__(self, default_language: str = "en"):
        self.default_language = default_language
        self._localizers: Dict[str, Localizer] = {}

    def get(self, language: Optional[str] = None) -> Localizer:
        key = language or self.default_language
        if key not in self._localizers:
            self._localizers[key] = Localizer(key)
        return self._localizers[key]


__all__ = ["Localizer", "LocalizerFactory", "CATALOGS"]
