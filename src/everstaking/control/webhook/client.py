import asyncio
import datetime
import logging
from enum import Enum

import requests

from everstaking.control.settings.core import WebhookSettings

log = logging.getLogger("webhook")


class NotificationEvent(Enum):
    PARTICIPATION_CONFIRMED = 'PARTICIPATION_CONFIRMED'
    PARTICIPATION_NOT_CONFIRMED = 'PARTICIPATION_NOT_CONFIRMED'
    STAKE_SENDING_FAILED = 'STAKE_SENDING_FAILED'

    def __str__(self):
        return self.value


class WebhookClient(object):
    """
        Sends staking events to configured webhook in json format, delivery is best effort
    """

    def __init__(self, settings: WebhookSettings, session: requests.Session = None):
        self._settings = settings
        self._session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self._settings.URL)

    def _send(self, payload: dict):
        resp = self._session.request(self._settings.METHOD or "POST", self._settings.URL,
                                     json=payload, headers=self._settings.HEADERS or {},
                                     timeout=self._settings.TIMEOUT)
        resp.raise_for_status()

    async def send_notification(self, event: NotificationEvent, data: dict = None) -> bool:
        if not self.enabled:
            return False
        payload = {
            "event": str(event),
            "data": data or {},
            "timestamp": datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        }
        try:
            await asyncio.to_thread(self._send, payload)
            log.info("Notification {} sent".format(event))
            return True
        except requests.RequestException as ex:
            log.warning("Failed to send notification {}: {}".format(event, ex))
        return False
