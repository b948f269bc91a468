from abc import ABC

from everstaking.control.datastore.core import Datastore
from everstaking.control.routines.ledger_providers.core import LedgerFacade
from everstaking.control.routines.submission import StakeSubmitter
from everstaking.control.settings.core import StakingSettings


class FundingStrategy(ABC):
    """
        Decides how much to stake and through which path (own wallet or DePool)
    """

    def __init__(self, ledger: LedgerFacade, datastore: Datastore, settings: StakingSettings,
                 submitter: StakeSubmitter):
        self._ledger = ledger
        self._datastore = datastore
        self._settings = settings
        self._submitter = submitter

    @property
    def wallet_addr(self) -> str:
        return self._settings.WALLET.ADDR

    async def perform_out_of_elections_action(self):
        raise NotImplementedError

    async def decide_and_submit(self, election_id: int, max_factor, retry_attempts: int):
        raise NotImplementedError

    async def recover_stake(self, retry_attempts: int = 5) -> int:
        raise NotImplementedError

    async def send_ticktock(self, retry_attempts: int = 5):
        raise NotImplementedError
