"""
iMIP API - Component Tests

FastAPI routes with the service dependency replaced by a mocked ImipService.
"""

import pytest
from fastapi.testclient import TestClient

from microservices.imip_service import main
from microservices.imip_service.factory import ImipServiceFactory
from tests.fixtures import FIXED_NOW, SAMPLE_ICS, make_ics

pytestmark = [pytest.mark.component]


@pytest.fixture
def client(mock_mail_transport, mock_token_store, mock_random, imip_config):
    service = ImipServiceFactory.create_for_testing(
        mock_mail_transport=mock_mail_transport,
        mock_token_store=mock_token_store,
        config=imip_config,
        mock_random=mock_random,
        clock=lambda: FIXED_NOW,
    )
    main.app.dependency_overrides[main.get_imip_service] = lambda: service
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def _request(**overrides):
    data = {
        "method": "REQUEST",
        "sender": "mailto:alice@example.com",
        "recipient": "mailto:bob@example.com",
        "sender_name": "Alice",
        "recipient_name": "Bob",
        "calendar": SAMPLE_ICS,
    }
    data.update(overrides)
    return data


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_info(self, client):
        response = client.get("/api/v1/imip/info")
        assert response.status_code == 200
        assert response.json()["capabilities"]["response_links"] is True


class TestSchedule:

    def test_request_is_sent(self, client, mock_mail_transport):
        response = client.post("/api/v1/imip/schedule", json=_request())

        assert response.status_code == 200
        body = response.json()
        assert body["outcome"] == "sent"
        assert body["schedule_status"].startswith("1.1")
        assert mock_mail_transport.last_message.subject == "Invitation: Planning"

    def test_insignificant_change(self, client, mock_mail_transport):
        response = client.post("/api/v1/imip/schedule", json=_request(significant_change=False))

        assert response.json() == {
            "outcome": "suppressed",
            "schedule_status": "1.0;We got the message, but it's not significant enough to warrant an email",
        }
        mock_mail_transport.send.assert_not_awaited()

    def test_previous_calendar_unchanged(self, client):
        response = client.post(
            "/api/v1/imip/schedule",
            json=_request(previous_calendar=make_ics()),
        )
        assert response.json()["outcome"] == "suppressed"

    def test_previous_calendar_changed(self, client, mock_mail_transport):
        response = client.post(
            "/api/v1/imip/schedule",
            json=_request(calendar=make_ics(summary="Planning v2", sequence=2), previous_calendar=SAMPLE_ICS),
        )

        assert response.json()["outcome"] == "sent"
        assert "line-through" in mock_mail_transport.last_message.html_body

    def test_unknown_method_is_handled_as_request(self, client, mock_mail_transport):
        response = client.post("/api/v1/imip/schedule", json=_request(method="PUBLISH"))

        assert response.json()["outcome"] == "sent"
        assert mock_mail_transport.last_message.attachments[0].content_type == "text/calendar; method=REQUEST"

    def test_invalid_calendar(self, client):
        response = client.post("/api/v1/imip/schedule", json=_request(calendar="not a calendar"))
        assert response.status_code == 400

    def test_missing_fields(self, client):
        response = client.post("/api/v1/imip/schedule", json={"method": "REQUEST"})
        assert response.status_code == 422
