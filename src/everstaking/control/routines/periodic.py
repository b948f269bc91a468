import asyncio
import datetime
import logging
import time

from everstaking.control.settings.core import PeriodicJobsSettings

log = logging.getLogger("elections")


class StakingRoutine(object):
    """
        Drives staking manager: sends stake on every tick and recovers returned stakes less often.
        Skips the tick if the node is not synced, runs it anyway if the sync state is unknown.
    """

    def __init__(self, manager, settings: PeriodicJobsSettings, max_factor=3, retry_attempts: int = 5,
                 clock=time.time):
        self._manager = manager
        self._settings = settings
        self._max_factor = max_factor
        self._retry_attempts = retry_attempts
        self._clock = clock
        self._last_recover_time = None

    async def _is_synced(self) -> bool:
        try:
            time_diff = await self._manager.get_time_diff()
        except Exception as ex:
            log.warning("Failed to get node time diff, sync check is skipped: {}".format(ex))
            return True
        if time_diff > self._settings.ACCEPTABLE_TIME_DIFF:
            return True
        log.info("Node is not synced, time diff: {}s".format(time_diff))
        return False

    def _recover_is_due(self, now) -> bool:
        return self._last_recover_time is None or \
            now - self._last_recover_time >= self._settings.RECOVER_STAKE_INTERVAL

    async def run_once(self, now=None):
        now = now if now is not None else self._clock()
        if not await self._is_synced():
            return
        try:
            await self._manager.send_stake(self._max_factor, self._retry_attempts)
        except Exception as ex:
            log.error("Stake sending failed: {}".format(ex))
        if self._recover_is_due(now):
            self._last_recover_time = now
            try:
                recovered = await self._manager.recover_stake(self._retry_attempts)
                if recovered:
                    log.info("Recovered stake: {}".format(recovered))
            except Exception as ex:
                log.error("Stake recovery failed: {}".format(ex))

    async def run_forever(self):
        interval = self._settings.SEND_STAKE_INTERVAL
        while True:
            try:
                await self.run_once()
            except Exception:
                log.exception("Staking routine failed")
            log.info("Sleeping for: {}s, next check after {}".format(
                interval, datetime.datetime.now() + datetime.timedelta(seconds=interval)))
            await asyncio.sleep(interval)
