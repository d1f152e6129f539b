"""
iMIP Service Protocols - DI Interfaces

All collaborators defined as Protocol classes for testability.
NO import-time I/O dependencies - safe to import anywhere.
"""
from datetime import date, datetime
from typing import Optional, Protocol, runtime_checkable

from .models import InvitationToken, OutboundMessage, SendResult


# Custom exceptions - defined here to avoid importing repository
class ImipServiceError(Exception):
    """Base exception for iMIP service errors"""
    pass


class CalendarParseError(ImipServiceError):
    """Calendar data could not be parsed"""
    pass


class TokenStoreError(ImipServiceError):
    """Invitation token could not be persisted"""
    pass


@runtime_checkable
class MailTransportProtocol(Protocol):
    """Outbound mail interface"""

    async def send(self, message: OutboundMessage) -> SendResult:
        """Send message; hard failures are returned, not raised"""
        ...

    async def close(self) -> None:
        """Release transport resources"""
        ...


@runtime_checkable
class TokenStoreProtocol(Protocol):
    """Durable store for invitation response tokens"""

    async def insert_token(self, token: InvitationToken) -> None:
        """Persist a new token record"""
        ...

    async def close(self) -> None:
        """Release connections"""
        ...


@runtime_checkable
class SecureRandomProtocol(Protocol):
    """Cryptographically secure random strings"""

    def generate(self, length: int, alphabet: str) -> str:
        """Random string of length characters drawn from alphabet"""
        ...


@runtime_checkable
class LocalizerProtocol(Protocol):
    """Locale-aware formatting and message translation"""

    language: str

    def format_date(self, value: date, width: str = "medium") -> str:
        ...

    def format_datetime(self, value: datetime, width: str = "medium|short") -> str:
        ...

    def format_time(self, value: datetime, width: str = "short") -> str:
        ...

    def format_weekday(self, value: date, width: str = "abbreviated") -> str:
        ...

    def translate(self, text: str, *args: str) -> str:
        """Translate text and substitute positional %s placeholders"""
        ...


@runtime_checkable
class LocalizerFactoryProtocol(Protocol):
    """Hands out a localizer per language"""

    def get(self, language: Optional[str] = None) -> LocalizerProtocol:
        ...


@runtime_checkable
class LinkGeneratorProtocol(Protocol):
    """Absolute URLs for the invitation response routes"""

    def link(self, route: str, token: str) -> str:
        ...


__all__ = [
    "ImipServiceError",
    "CalendarParseError",
    "TokenStoreError",
    "MailTransportProtocol",
    "TokenStoreProtocol",
    "SecureRandomProtocol",
    "LocalizerProtocol",
    "LocalizerFactoryProtocol",
    "LinkGeneratorProtocol",
]
