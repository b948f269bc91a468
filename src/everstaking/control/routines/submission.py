import logging
import time
from typing import Callable

from everstaking.control.datastore.core import Datastore
from everstaking.control.exceptions.staking import StakingValidationError, TransactionFailedException
from everstaking.control.routines.ledger_providers.core import LedgerFacade
from everstaking.control.routines.models.elections import ElectionRecord
from everstaking.control.routines.payload import gen_validator_elect_req, gen_validator_elect_signed
from everstaking.control.utils.retry import retry_async
from everstaking.everlibs.toncommon.models.TonAddress import TonAddress
from everstaking.everlibs.toncommon.models.TonCoin import TonCoin

log = logging.getLogger("elections")


class StakeSubmitter(object):
    """
    Shared submission primitive of both funding strategies: provisions election keys,
    signs election request and submits it, keeping election record up to date.
    """

    def __init__(self, ledger: LedgerFacade, datastore: Datastore,
                 retry_interval: float = 1.0, clock: Callable[[], float] = time.time):
        self._ledger = ledger
        self._datastore = datastore
        self._retry_interval = retry_interval
        self._clock = clock

    @staticmethod
    def _is_int(value) -> bool:
        return isinstance(value, int) and not isinstance(value, bool)

    def validate(self, election_id, src_addr, dst_addr, stake, max_factor, retry_attempts):
        if not self._is_int(election_id) or election_id <= 0:
            raise StakingValidationError("Invalid election id: {}".format(election_id))
        if not TonAddress.is_valid(src_addr):
            raise StakingValidationError("Invalid source address: {}".format(src_addr))
        if not TonAddress.is_valid(dst_addr):
            raise StakingValidationError("Invalid destination address: {}".format(dst_addr))
        if not self._is_int(stake) or stake <= 0:
            raise StakingValidationError("Stake must be a positive integer, got: {}".format(stake))
        if isinstance(max_factor, bool) or not isinstance(max_factor, (int, float)) or not 1 <= max_factor <= 100:
            raise StakingValidationError("Max factor must be within [1, 100], got: {}".format(max_factor))
        if not self._is_int(retry_attempts) or retry_attempts <= 0:
            raise StakingValidationError("Retry attempts must be a positive integer, got: {}".format(retry_attempts))

    async def _provision_keys(self, record: ElectionRecord) -> ElectionRecord:
        log.info("Generating keys for election {}...".format(record.election_id))
        key, secret = await self._ledger.get_new_key_pair()
        adnl_key, adnl_secret = await self._ledger.get_new_key_pair()
        validation_period = await self._ledger.get_validation_period()
        await self._ledger.add_keys_and_validator_addr(record.election_id, validation_period, key, adnl_key)
        record.set_key_material(key, adnl_key, [secret, adnl_secret])
        log.info("Perm key hash: {}".format(key))
        log.info("ADNL key hash: {}".format(adnl_key))
        # keys are persisted right away to be reused by next attempt
        return self._datastore.set_elections_info(record)

    async def _sign(self, record: ElectionRecord, src_addr: str, max_factor):
        log.info("Signing election request...")
        request = gen_validator_elect_req(src_addr, record.election_id, max_factor, record.adnl_key)
        public_key = await self._ledger.export_pub(record.key)
        signature = await self._ledger.sign_request(record.key, request)
        record.set_signature(public_key, signature)

    async def submit_transaction(self, params: dict, retry_attempts: int) -> dict:
        async def attempt():
            result = await self._ledger.submit_transaction(params)
            if not result.get("success"):
                raise TransactionFailedException("Transaction to {} was not accepted".format(params.get("dest")),
                                                 dest=params.get("dest"))
            return result

        return await retry_async(attempt, retry_attempts, base_interval=self._retry_interval,
                                 name="submitTransaction")

    async def send_stake_impl(self, election_id: int, src_addr: str, dst_addr: str, stake: int,
                              inc_stake: bool, max_factor, retry_attempts: int) -> ElectionRecord:
        """
        :param election_id: Election to participate in
        :param src_addr: Address the elector will return stake to (validator wallet or DePool proxy)
        :param dst_addr: Address of elector or DePool
        :param stake: Stake in tokens
        :param inc_stake: Whether stake adds up to already submitted ones
        :return: stored election record
        """
        self.validate(election_id, src_addr, dst_addr, stake, max_factor, retry_attempts)
        record = self._datastore.get_elections_info(election_id)
        if not record.has_key_material():
            record = await self._provision_keys(record)
        else:
            log.info("Using existing keys of election {}".format(election_id))
        try:
            if not record.has_signature():
                await self._sign(record, src_addr, max_factor)
            payload = self._ledger.encode_boc(gen_validator_elect_signed(election_id, max_factor,
                                                                         record.adnl_key,
                                                                         public_key=record.public_key,
                                                                         signature=record.signature,
                                                                         now=int(self._clock())))
            log.info("Submitting election transaction: election {}, stake {}, {} -> {}".format(
                election_id, stake, TonAddress.get_short_address(src_addr), TonAddress.get_short_address(dst_addr)))
            await self.submit_transaction({
                "dest": dst_addr,
                "value": TonCoin.convert_to_nano_tokens(stake),
                "bounce": True,
                "allBalance": False,
                "payload": payload
            }, retry_attempts)
        except Exception:
            if inc_stake:
                # nothing was added
                record.stake = 0
            self._datastore.set_elections_info(record, inc_stake=inc_stake)
            raise
        record.last_stake_sending_time = int(self._clock())
        record.stake = stake
        stored = self._datastore.set_elections_info(record, inc_stake=inc_stake)
        log.info("Election {} stake submitted, total stake {}".format(election_id, stored.stake))
        return stored
