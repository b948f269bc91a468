import logging
import time
from typing import Callable, List

from everstaking.control.datastore.core import Datastore
from everstaking.control.exceptions.staking import MissingKeyMaterialException
from everstaking.control.routines.funding_providers.core import FundingStrategy
from everstaking.control.routines.ledger_providers.core import LedgerFacade
from everstaking.control.routines.models.elections import ElectionRecord
from everstaking.control.routines.submission import StakeSubmitter
from everstaking.control.webhook.client import NotificationEvent, WebhookClient

log = logging.getLogger("elections")


class StakingManagementPolicy(object):
    """
        Election state machine. Decides whether to act on current elections and delegates
        stake sizing and submission path to the funding strategy.
    """

    def __init__(self, ledger: LedgerFacade, datastore: Datastore, funding: FundingStrategy,
                 submitter: StakeSubmitter, notifier: WebhookClient,
                 clock: Callable[[], float] = time.time):
        self._ledger = ledger
        self._datastore = datastore
        self._funding = funding
        self._submitter = submitter
        self._notifier = notifier
        self._clock = clock
        # at most one sendStake per process, overlapping calls are dropped
        self._stake_sending_in_progress = False

    @property
    def stake_sending_in_progress(self) -> bool:
        return self._stake_sending_in_progress

    async def get_next_election_id(self, election_id: int) -> int:
        validation_period = await self._ledger.get_validation_period()
        elections_start_before = await self._ledger.get_elections_start_before()
        return election_id + validation_period - elections_start_before

    def _confirmation_timeout(self) -> int:
        return int(self._datastore.get_settings()["PARTICIPATION_CONFIRMATION_TIMEOUT"])

    async def send_stake(self, max_factor=3, retry_attempts: int = 5):
        if self._stake_sending_in_progress:
            log.info("Stake sending is already in progress")
            return
        self._stake_sending_in_progress = True
        try:
            await self._send_stake(max_factor, retry_attempts)
        finally:
            self._stake_sending_in_progress = False

    async def _check_participation(self, record: ElectionRecord, active: bool) -> bool:
        """
        :return: True if nothing else should be done in this cycle
        """
        if record.participation_confirmed:
            log.info("Elections {}, participation already confirmed".format(record.election_id))
            return active
        stake = await self._ledger.participates_in(record.public_key)
        if stake > 0:
            record.participation_confirmed = True
            self._datastore.set_elections_info(record)
            log.info("Elections {}, participation confirmed with stake {}".format(record.election_id, stake))
            await self._notifier.send_notification(NotificationEvent.PARTICIPATION_CONFIRMED, {
                "election_id": record.election_id,
                "next_election_id": await self.get_next_election_id(record.election_id)
            })
            return active
        if active and record.last_stake_sending_time is not None:
            elapsed = int(self._clock()) - record.last_stake_sending_time
            timeout = self._confirmation_timeout()
            if elapsed < timeout:
                log.info("Elections {}, waiting for participation confirmation ({}s of {}s)".format(
                    record.election_id, elapsed, timeout))
                return True
            log.warning("Elections {}, participation is not confirmed within {}s, resubmitting".format(
                record.election_id, timeout))
            await self._notifier.send_notification(NotificationEvent.PARTICIPATION_NOT_CONFIRMED, {
                "election_id": record.election_id,
                "last_stake_sending_time": record.last_stake_sending_time
            })
        return False

    async def _send_stake(self, max_factor, retry_attempts: int):
        active_election_id = await self._ledger.get_active_election_id()
        election_id = active_election_id
        if not active_election_id:
            past_ids = await self._ledger.get_past_election_ids()
            election_id = max(past_ids) if past_ids else None

        if election_id:
            record = self._datastore.get_elections_info(election_id)
            if record.public_key and await self._check_participation(record, active=bool(active_election_id)):
                return

        if not active_election_id:
            log.info("No current elections")
            await self._funding.perform_out_of_elections_action()
            return

        if self._datastore.skip_next_elections():
            log.info("Elections {}, skipped".format(active_election_id))
            return

        try:
            await self._funding.decide_and_submit(active_election_id, max_factor, retry_attempts)
        except Exception as ex:
            log.exception("Elections {}, failed to send stake: {}".format(active_election_id, ex))
            await self._notifier.send_notification(NotificationEvent.STAKE_SENDING_FAILED, {
                "election_id": active_election_id,
                "message": str(ex)
            })
            raise

    async def send_stake_impl(self, election_id: int, src_addr: str, dst_addr: str, stake: int,
                              inc_stake: bool, max_factor, retry_attempts: int) -> ElectionRecord:
        return await self._submitter.send_stake_impl(election_id, src_addr, dst_addr, stake,
                                                     inc_stake=inc_stake, max_factor=max_factor,
                                                     retry_attempts=retry_attempts)

    async def recover_stake(self, retry_attempts: int = 5) -> int:
        return await self._funding.recover_stake(retry_attempts)

    async def send_ticktock(self, retry_attempts: int = 5):
        await self._funding.send_ticktock(retry_attempts)

    async def restore_keys(self) -> List[int]:
        """
        Registers keys of past and current elections on the node again.
        Fails before touching the node if any of the records lacks key material.
        """
        election_ids = set(await self._ledger.get_past_election_ids())
        active_election_id = await self._ledger.get_active_election_id()
        if active_election_id:
            election_ids.add(active_election_id)
        records = []
        for election_id in sorted(election_ids):
            record = self._datastore.get_elections_info(election_id)
            if not record.has_key_material() or record.secrets is None:
                raise MissingKeyMaterialException(election_id)
            records.append(record)
        for record in records:
            await self._ledger.restore_keys(record)
        log.info("Keys restored for elections: {}".format([r.election_id for r in records]))
        return [r.election_id for r in records]
