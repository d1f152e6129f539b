"""
iMIP Service - Mock Dependencies

Mock implementations for component testing.
These mocks simulate external dependencies (mail transport, token store,
random source) without requiring real infrastructure.

Usage:
    from tests.component.imip_service.mocks import (
        MockMailTransport,
        MockTokenStore,
        MockRandom,
    )
"""

from typing import List
from unittest.mock import AsyncMock

from microservices.imip_service.models import InvitationToken, OutboundMessage, SendResult


class MockMailTransport:
    """
    Mock mail transport.

    Records every message and reports delivery by default; tests override
    send.return_value or send.side_effect for failures.
    """

    def __init__(self):
        self.sent_messages: List[OutboundMessage] = []
        self.send = AsyncMock(side_effect=self._send)
        self.close = AsyncMock(return_value=None)

    async def _send(self, message: OutboundMessage) -> SendResult:
        self.sent_messages.append(message)
        return SendResult.delivered()

    def fail_with(self, result: SendResult) -> None:
        """Make subsequent sends return a failed result"""
        self.send.side_effect = None
        self.send.return_value = result

    @property
    def last_message(self) -> OutboundMessage:
        return self.sent_messages[-1]


class MockTokenStore:
    """Mock invitation token store"""

    def __init__(self):
        self.tokens: List[InvitationToken] = []
        self.insert_token = AsyncMock(side_effect=self._insert)
        self.close = AsyncMock(return_value=None)

    async def _insert(self, token: InvitationToken) -> None:
        self.tokens.append(token)


class MockRandom:
    """Deterministic random source: a counter padded to the requested length"""

    def __init__(self):
        self.calls = 0

    def generate(self, length: int, alphabet: str) -> str:
        self.calls += 1
        return str(self.calls).rjust(length, "a")
