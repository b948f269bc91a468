import asyncio
import logging

from everstaking.control.exceptions.staking import ProxyDiscoveryException
from everstaking.control.routines.funding_providers.core import FundingStrategy
from everstaking.everlibs.toncommon.models.DePoolEvent import DePoolElectionEvent

log = logging.getLogger("funding")


class DePoolFunding(FundingStrategy):
    TICKTOCK_VALUE = 500_000_000
    # DePool aggregates stakes itself, validator sends nominal one
    NOMINAL_STAKE = 1

    @property
    def depool_addr(self) -> str:
        return self._settings.FUNDING.ADDR

    async def send_ticktock(self, retry_attempts: int = 5):
        log.info("Sending ticktock to DePool {}".format(self.depool_addr))
        payload = await self._ledger.encode_ticktock_body(self._settings.FUNDING.DEPOOL_ABI_PATH)
        await self._submitter.submit_transaction({
            "dest": self.depool_addr,
            "value": self.TICKTOCK_VALUE,
            "bounce": True,
            "allBalance": False,
            "payload": payload
        }, retry_attempts)

    async def recover_stake(self, retry_attempts: int = 5) -> int:
        # stakes are returned to DePool by its proxies
        return 0

    async def perform_out_of_elections_action(self):
        records = self._datastore.get_elections_info()
        if not records:
            return
        last = records[-1]
        if last.post_elections_ticktock_is_sent:
            return
        # next validator set is empty once the new validators started their work
        p36 = await self._ledger.get_config_param(36)
        if p36:
            log.debug("Validator set is not rotated yet, postponing post-elections ticktock")
            return
        log.info("Sending post-elections ticktock...")
        await self.send_ticktock()
        last.post_elections_ticktock_is_sent = True
        self._datastore.set_elections_info(last)

    async def discover_proxy(self, election_id: int) -> str:
        attempts = self._settings.FUNDING.PROXY_DISCOVERY_ATTEMPTS
        delay = self._settings.FUNDING.TICKTOCK_DELAY
        for attempt in range(1, attempts + 1):
            await self.send_ticktock()
            log.info("Waiting {}s for DePool to request stake signing...".format(delay))
            await asyncio.sleep(delay)
            event = await self._ledger.find_depool_event(self.depool_addr, self._settings.FUNDING.DEPOOL_ABI_PATH,
                                                         DePoolElectionEvent.NAME, election_id=election_id)
            if event and event.proxy:
                log.info("DePool proxy address is {}".format(event.proxy))
                return event.proxy
            log.warning("No signing request for election {} yet, attempt {}/{}".format(election_id, attempt, attempts))
        raise ProxyDiscoveryException("Unable to detect relevant proxy address in DePool events",
                                      election_id=election_id, attempts=attempts)

    async def decide_and_submit(self, election_id: int, max_factor, retry_attempts: int):
        log.info("Elections {}, funding from DePool {}".format(election_id, self.depool_addr))
        proxy_addr = await self.discover_proxy(election_id)
        return await self._submitter.send_stake_impl(election_id, proxy_addr, self.depool_addr,
                                                     self.NOMINAL_STAKE, inc_stake=False,
                                                     max_factor=max_factor, retry_attempts=retry_attempts)
