from everstaking.control.settings.base import BaseStakingSettings
from everstaking.control.settings.funding import FundingSettings, FundingType
from everstaking.control.settings.ledger import ConsoleSettings, TonosCliSettings, EverosSettings


class WalletSettings(BaseStakingSettings):

    ADDR = None
    KEYS = None  # {"public": "...", "secret": "..."}, never commit raw keys, use secret manager instead
    ABI_PATH = '/var/everstaking/contracts/SafeMultisigWallet.abi.json'


class WebhookSettings(BaseStakingSettings):

    URL = None
    METHOD = 'POST'
    HEADERS = {}
    TIMEOUT = 10


class PeriodicJobsSettings(BaseStakingSettings):

    ENABLED = True
    ACCEPTABLE_TIME_DIFF = -20
    SEND_STAKE_INTERVAL = 15 * 60
    RECOVER_STAKE_INTERVAL = 60 * 60


class StakingSettings(BaseStakingSettings):

    DATASTORE_PATH = '/data/staking-manager/db.json'
    TOOLS_CWD_BASE = '/var/everstaking/cwds'
    PARTICIPATION_CONFIRMATION_TIMEOUT = 1800
    SKIP_NEXT_ELECTIONS = False
    NEXT_STAKE_SIZE = None  # tokens, operator override
    MAX_FACTOR = 3
    RETRY_ATTEMPTS = 5

    WALLET: WalletSettings = WalletSettings()
    FUNDING: FundingSettings = FundingSettings()
    CONSOLE: ConsoleSettings = ConsoleSettings()
    TONOS_CLI: TonosCliSettings = TonosCliSettings()
    EVEROS: EverosSettings = EverosSettings()
    WEBHOOK: WebhookSettings = WebhookSettings()
    PERIODIC_JOBS: PeriodicJobsSettings = PeriodicJobsSettings()

    def validate(self):
        if not self.WALLET.ADDR:
            raise ValueError("Wallet address is required")
        if self.FUNDING.TYPE == FundingType.DEPOOL and not self.FUNDING.ADDR:
            raise ValueError("DePool address is required for depool funding")

    @staticmethod
    def defaults() -> dict:
        return StakingSettings().to_json()
