from enum import Enum

from everstaking.control.settings.base import BaseStakingSettings


class FundingType(Enum):
    WALLET = 'wallet'
    DEPOOL = 'depool'

    def __str__(self):
        return self.value


class FundingSettings(BaseStakingSettings):

    TYPE = FundingType.WALLET
    ADDR = None  # DePool address, depool funding only
    DEFAULT_STAKE = None  # tokens, wallet funding only
    DEPOOL_ABI_PATH = '/var/everstaking/contracts/DePool.abi.json'

    # DePool proxy discovery
    TICKTOCK_DELAY = 60
    PROXY_DISCOVERY_ATTEMPTS = 3

    # wallet stake sizing
    RECOVER_COOLDOWN = 60
    SIZING_ATTEMPTS = 3
    SIZING_RETRY_DELAY = 60
