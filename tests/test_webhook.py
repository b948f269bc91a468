import pytest
import requests

from everstaking.control.settings.core import WebhookSettings
from everstaking.control.webhook.client import NotificationEvent, WebhookClient


class FakeResponse(object):

    def __init__(self, status_code=200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError("{} error".format(self.status_code))


class FakeSession(object):

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.error:
            raise self.error
        return self.response


def webhook(**settings):
    return WebhookSettings.create(dict({"URL": "https://hooks.local/staking"}, **settings))


class TestWebhookClient:

    @pytest.mark.asyncio
    async def test_disabled_without_url(self):
        session = FakeSession()
        client = WebhookClient(WebhookSettings(), session=session)
        assert not client.enabled
        assert await client.send_notification(NotificationEvent.PARTICIPATION_CONFIRMED, {}) is False
        assert session.requests == []

    @pytest.mark.asyncio
    async def test_payload(self):
        session = FakeSession()
        client = WebhookClient(webhook(HEADERS={"Authorization": "Bearer t"}, TIMEOUT=3), session=session)
        sent = await client.send_notification(NotificationEvent.STAKE_SENDING_FAILED,
                                              {"election_id": 1700000000, "message": "boom"})
        assert sent is True
        method, url, kwargs = session.requests[0]
        assert method == "POST"
        assert url == "https://hooks.local/staking"
        assert kwargs["headers"] == {"Authorization": "Bearer t"}
        assert kwargs["timeout"] == 3
        payload = kwargs["json"]
        assert payload["event"] == "STAKE_SENDING_FAILED"
        assert payload["data"] == {"election_id": 1700000000, "message": "boom"}
        assert payload["timestamp"]

    @pytest.mark.asyncio
    async def test_custom_method(self):
        session = FakeSession()
        await WebhookClient(webhook(METHOD="PUT"), session=session).send_notification(
            NotificationEvent.PARTICIPATION_NOT_CONFIRMED)
        assert session.requests[0][0] == "PUT"
        assert session.requests[0][2]["json"]["data"] == {}

    @pytest.mark.asyncio
    async def test_http_error_is_not_raised(self):
        client = WebhookClient(webhook(), session=FakeSession(response=FakeResponse(500)))
        assert await client.send_notification(NotificationEvent.PARTICIPATION_CONFIRMED, {}) is False

    @pytest.mark.asyncio
    async def test_connection_error_is_not_raised(self):
        client = WebhookClient(webhook(), session=FakeSession(error=requests.ConnectionError("refused")))
        assert await client.send_notification(NotificationEvent.PARTICIPATION_CONFIRMED, {}) is False
