import asyncio
import logging
import math

from everstaking.control.exceptions.staking import InsufficientBalanceException, StakingException, \
    UnsupportedCapabilityException
from everstaking.control.routines.funding_providers.core import FundingStrategy
from everstaking.control.routines.payload import gen_recover_query
from everstaking.everlibs.toncommon.models.TonAddress import TonAddress
from everstaking.everlibs.toncommon.models.TonCoin import TonCoin

log = logging.getLogger("funding")


class WalletFunding(FundingStrategy):
    # kept on wallet for fees and next elections
    OPTIMAL_MARGIN = 10_000_000_000
    CRITICAL_MARGIN = 1_000_000_000
    RECOVER_REQUEST_VALUE = 500_000_000

    async def perform_out_of_elections_action(self):
        pass

    async def send_ticktock(self, retry_attempts: int = 5):
        raise UnsupportedCapabilityException("Ticktock is supported by depool funding only")

    async def recover_stake(self, retry_attempts: int = 5) -> int:
        """
        Requests elector to return stakes of finished elections.
        :return: amount in nanotokens requested to be returned
        """
        amount = await self._ledger.compute_returned_stake(TonAddress.get_account_id(self.wallet_addr))
        if not amount:
            log.info("Nothing to recover")
            return 0
        payload = self._ledger.encode_boc(gen_recover_query())
        await self._submitter.submit_transaction({
            "dest": await self._ledger.get_elector_address(),
            "value": self.RECOVER_REQUEST_VALUE,
            "bounce": True,
            "allBalance": False,
            "payload": payload
        }, retry_attempts)
        log.info("Recover of {} nanotoken(s) is requested".format(amount))
        return amount

    async def _previous_key_is_validating(self, election_id: int) -> bool:
        previous = [r for r in self._datastore.get_elections_info() if r.election_id < election_id]
        if not previous or not previous[-1].public_key:
            return False
        public_key = previous[-1].public_key.lower()
        validators = await self._ledger.get_validators()
        return any(str(v.get("public_key", "")).lower() == public_key for v in validators)

    async def compute_stake(self, election_id: int) -> int:
        """
        :return: stake size in nanotokens, checked against wallet balance
        """
        explicit = self._datastore.next_stake_size() or self._settings.FUNDING.DEFAULT_STAKE
        balance = await self._ledger.get_account_balance(self.wallet_addr)
        min_stake = await self._ledger.get_min_stake()
        if explicit:
            nano_stake = TonCoin.convert_to_nano_tokens(explicit)
            if nano_stake < min_stake:
                raise StakingException("Stake {} is less than min stake allowed {}".format(nano_stake, min_stake))
        elif await self._previous_key_is_validating(election_id):
            # previous stake is still frozen, everything left goes to this election
            nano_stake = max(min_stake, balance - self.OPTIMAL_MARGIN)
        else:
            nano_stake = max(min_stake, balance // 2 - self.OPTIMAL_MARGIN)
        required = nano_stake + self.CRITICAL_MARGIN
        log.info("Wallet balance {}, stake {}, min stake {}".format(balance, nano_stake, min_stake))
        if balance < required:
            raise InsufficientBalanceException("Not enough tokens in {}".format(self.wallet_addr),
                                               balance=balance, required=required)
        return nano_stake

    async def _compute_stake_with_retries(self, election_id: int) -> int:
        attempts = self._settings.FUNDING.SIZING_ATTEMPTS
        for attempt in range(1, attempts + 1):
            try:
                return await self.compute_stake(election_id)
            except InsufficientBalanceException as ex:
                if attempt >= attempts:
                    raise
                log.warning("Stake sizing attempt {}/{} failed: {}".format(attempt, attempts, ex))
                await asyncio.sleep(self._settings.FUNDING.SIZING_RETRY_DELAY)

    async def decide_and_submit(self, election_id: int, max_factor, retry_attempts: int):
        log.info("Elections {}, funding from wallet".format(election_id))
        recovered = await self.recover_stake(retry_attempts)
        if recovered:
            log.info("Waiting {}s for recovered stake".format(self._settings.FUNDING.RECOVER_COOLDOWN))
            await asyncio.sleep(self._settings.FUNDING.RECOVER_COOLDOWN)
        nano_stake = await self._compute_stake_with_retries(election_id)
        participants = await self._ledger.get_participant_list_extended()
        min_fraction = math.ceil(participants.total_stake / 4096)
        if nano_stake < min_fraction:
            raise StakingException("No way to send less than {} nanotokens at the moment".format(min_fraction))
        stake = TonCoin.convert_to_tokens_ceil(nano_stake)
        elector_addr = await self._ledger.get_elector_address()
        return await self._submitter.send_stake_impl(election_id, self.wallet_addr, elector_addr, stake,
                                                     inc_stake=True, max_factor=max_factor,
                                                     retry_attempts=retry_attempts)
