import pytest

from everstaking.control.datastore.core import Datastore
from everstaking.control.manager import StakingManager
from everstaking.control.routines.funding_providers.depool import DePoolFunding
from everstaking.control.routines.funding_providers.wallet import WalletFunding
from everstaking.control.routines.submission import StakeSubmitter
from everstaking.control.settings.core import StakingSettings
from everstaking.control.settings.funding import FundingType

from fakes import DEPOOL_ADDR, WALLET_ADDR, FakeClock, FakeLedger, RecordingNotifier


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def datastore(tmp_path):
    return Datastore(str(tmp_path / "staking" / "db.json"))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_manager(ledger, datastore, notifier, clock):
    """Builds manager over fake ledger, all waits are zero."""

    def make(funding_type: str = "wallet", **funding):
        funding_config = {
            "TYPE": funding_type,
            "TICKTOCK_DELAY": 0,
            "RECOVER_COOLDOWN": 0,
            "SIZING_RETRY_DELAY": 0,
        }
        if funding_type == FundingType.DEPOOL.value:
            funding_config["ADDR"] = DEPOOL_ADDR
        funding_config.update(funding)
        settings = StakingSettings.create(datastore.set_settings({
            "WALLET": {"ADDR": WALLET_ADDR},
            "FUNDING": funding_config,
        }))
        submitter = StakeSubmitter(ledger, datastore, retry_interval=0, clock=clock)
        funding_cls = DePoolFunding if settings.FUNDING.TYPE == FundingType.DEPOOL else WalletFunding
        strategy = funding_cls(ledger, datastore, settings, submitter)
        return StakingManager(ledger, datastore, strategy, submitter, notifier, settings, clock=clock)

    return make
