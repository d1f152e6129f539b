"""
Mail Transport and Token Repository - Component Tests

Resend transport against an httpx mock transport, token repository against a
mocked asyncpg pool.
"""

import base64
import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from microservices.imip_service.mail_transport import ResendMailTransport
from microservices.imip_service.models import InvitationToken, MailAttachment, OutboundMessage
from microservices.imip_service.protocols import TokenStoreError
from microservices.imip_service.token_repository import InvitationTokenRepository
from tests.fixtures import utc

pytestmark = [pytest.mark.component, pytest.mark.asyncio]


def _message(**overrides) -> OutboundMessage:
    data = {
        "from_email": "invitations-noreply@example.org",
        "from_name": "Alice via isA",
        "to_email": "bob@example.com",
        "to_name": "Bob",
        "reply_to_email": "alice@example.com",
        "reply_to_name": "Alice",
        "subject": "Invitation: Standup",
        "html_body": "<p>hi</p>",
        "text_body": "hi",
        "attachments": [
            MailAttachment(
                filename="event.ics",
                content="BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n",
                content_type="text/calendar; method=REQUEST",
            )
        ],
    }
    data.update(overrides)
    return OutboundMessage(**data)


def _transport(handler) -> ResendMailTransport:
    client = httpx.AsyncClient(
        base_url="https://api.resend.test",
        transport=httpx.MockTransport(handler),
    )
    return ResendMailTransport(client=client)


class TestResendMailTransport:

    async def test_payload(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": "email_1"})

        transport = _transport(handler)
        result = await transport.send(_message())
        await transport.close()

        assert result.ok
        assert requests[0].url.path == "/emails"
        body = json.loads(requests[0].content)
        assert body["from"] == "Alice via isA <invitations-noreply@example.org>"
        assert body["to"] == ["Bob <bob@example.com>"]
        assert body["reply_to"] == ["Alice <alice@example.com>"]
        attachment = body["attachments"][0]
        assert attachment["filename"] == "event.ics"
        assert base64.b64decode(attachment["content"]).decode() == "BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n"

    async def test_without_names(self):
        transport = _transport(lambda request: httpx.Response(200, json={}))
        payload = transport.build_payload(
            _message(from_name=None, to_name=None, reply_to_email=None, attachments=[])
        )

        assert payload["from"] == "invitations-noreply@example.org"
        assert payload["to"] == ["bob@example.com"]
        assert "reply_to" not in payload
        assert "attachments" not in payload

    async def test_rejected_recipient(self):
        transport = _transport(lambda request: httpx.Response(422, json={"message": "invalid to"}))

        result = await transport.send(_message())

        assert not result.ok
        assert result.failed_recipients == ["bob@example.com"]

    async def test_server_error(self):
        transport = _transport(lambda request: httpx.Response(500, text="oops"))

        result = await transport.send(_message())

        assert not result.ok
        assert "500" in result.error

    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await _transport(handler).send(_message())

        assert not result.ok
        assert result.error


class TestInvitationTokenRepository:

    def _token(self) -> InvitationToken:
        return InvitationToken(
            token="t" * 60,
            attendee="mailto:bob@example.com",
            organizer="mailto:alice@example.com",
            uid="evt-1@example.com",
            recurrence_id=None,
            sequence=1,
            expiration=utc(2030, 5, 1, 11, 0),
        )

    async def test_insert(self):
        pool = MagicMock()
        pool.execute = AsyncMock(return_value="INSERT 0 1")
        repository = InvitationTokenRepository(dsn="postgresql://test", pool=pool)

        await repository.insert_token(self._token())

        args = pool.execute.await_args.args
        assert "calendar_invitations" in args[0]
        assert args[1:] == (
            "t" * 60,
            "mailto:bob@example.com",
            "mailto:alice@example.com",
            "evt-1@example.com",
            None,
            1,
            int(utc(2030, 5, 1, 11, 0).timestamp()),
        )

    async def test_connection_error_is_wrapped(self):
        pool = MagicMock()
        pool.execute = AsyncMock(side_effect=OSError("connection refused"))
        repository = InvitationTokenRepository(dsn="postgresql://test", pool=pool)

        with pytest.raises(TokenStoreError):
            await repository.insert_token(self._token())

    async def test_close(self):
        pool = MagicMock()
        pool.close = AsyncMock()
        repository = InvitationTokenRepository(dsn="postgresql://test", pool=pool)

        await repository.close()

        pool.close.assert_awaited_once()
