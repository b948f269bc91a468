import json

import pytest

from everstaking.control.datastore.core import Datastore
from everstaking.control.manager import StakingManager
from everstaking.control.routines.funding_providers.depool import DePoolFunding
from everstaking.control.routines.funding_providers.wallet import WalletFunding
from everstaking.control.routines.ledger_providers.console import ConsoleLedger
from everstaking.control.routines.ledger_providers.everos import EverosLedger
from everstaking.control.routines.periodic import StakingRoutine
from everstaking.control.settings.core import PeriodicJobsSettings
from everstaking.control.settings.funding import FundingType

from fakes import DEPOOL_ADDR, WALLET_ADDR, FakeClock


class FakeManager(object):

    def __init__(self, time_diff=0):
        self.time_diff = time_diff
        self.calls = []

    async def get_time_diff(self):
        if isinstance(self.time_diff, Exception):
            raise self.time_diff
        return self.time_diff

    async def send_stake(self, max_factor=3, retry_attempts=5):
        self.calls.append(("send_stake", max_factor, retry_attempts))

    async def recover_stake(self, retry_attempts=5):
        self.calls.append(("recover_stake", retry_attempts))
        return 0


class TestStakingRoutine:

    def routine(self, manager, clock):
        return StakingRoutine(manager, PeriodicJobsSettings(), max_factor=2, retry_attempts=4, clock=clock)

    @pytest.mark.asyncio
    async def test_sends_stake_and_recovers_on_schedule(self):
        clock = FakeClock()
        manager = FakeManager()
        routine = self.routine(manager, clock)

        await routine.run_once()
        clock.now += 900
        await routine.run_once()
        clock.now += 2700
        await routine.run_once()

        assert [call[0] for call in manager.calls] == ["send_stake", "recover_stake",
                                                      "send_stake",
                                                      "send_stake", "recover_stake"]
        assert manager.calls[0] == ("send_stake", 2, 4)

    @pytest.mark.asyncio
    async def test_skips_when_not_synced(self):
        manager = FakeManager(time_diff=-21)
        await self.routine(manager, FakeClock()).run_once()
        assert manager.calls == []

    @pytest.mark.asyncio
    async def test_runs_when_time_diff_unavailable(self):
        manager = FakeManager(time_diff=RuntimeError("getstats failed"))
        await self.routine(manager, FakeClock()).run_once()
        assert [call[0] for call in manager.calls] == ["send_stake", "recover_stake"]

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_routine(self):
        manager = FakeManager()

        async def send_stake(max_factor=3, retry_attempts=5):
            manager.calls.append(("send_stake",))
            raise RuntimeError("elector is unreachable")

        manager.send_stake = send_stake
        await self.routine(manager, FakeClock()).run_once()
        assert [call[0] for call in manager.calls] == ["send_stake", "recover_stake"]


class SecretManagerStub(object):

    def get_wallet_address(self):
        return WALLET_ADDR

    def get_wallet_keys(self):
        return {"public": "1" * 64, "secret": "2" * 64}


class TestManagerCreate:

    def test_composes_from_settings(self, tmp_path):
        db_path = str(tmp_path / "db.json")
        manager = StakingManager.create({
            "DATASTORE_PATH": db_path,
            "TOOLS_CWD_BASE": str(tmp_path / "cwds"),
            "FUNDING": {"TYPE": "depool", "ADDR": DEPOOL_ADDR},
            "CONSOLE": {"MAXIMIZE_USAGE": False},
        }, SecretManagerStub())

        assert isinstance(manager._funding, DePoolFunding)
        assert isinstance(manager._ledger, EverosLedger)
        assert manager.settings.FUNDING.TYPE == FundingType.DEPOOL
        assert manager.settings.WALLET.ADDR == WALLET_ADDR
        assert manager.settings.WALLET.KEYS["secret"] == "2" * 64
        with open(db_path) as f:
            stored = json.load(f)
        assert "2" * 64 not in json.dumps(stored)
        assert stored["settings"]["WALLET"]["ADDR"] == WALLET_ADDR

    def test_operator_flags_survive_restart(self, tmp_path):
        db_path = str(tmp_path / "db.json")
        config = {"DATASTORE_PATH": db_path, "TOOLS_CWD_BASE": str(tmp_path / "cwds"),
                  "WALLET": {"ADDR": WALLET_ADDR, "KEYS": {"public": "1" * 64, "secret": "2" * 64}}}
        StakingManager.create(config).skip_next_elections(True)

        manager = StakingManager.create(config)
        assert Datastore(db_path).skip_next_elections() is True
        assert isinstance(manager._funding, WalletFunding)
        assert isinstance(manager._ledger, ConsoleLedger)
        assert config["WALLET"]["KEYS"]["secret"] == "2" * 64

    def test_invalid_settings(self, tmp_path):
        with pytest.raises(ValueError):
            StakingManager.create({"DATASTORE_PATH": str(tmp_path / "db.json"),
                                   "FUNDING": {"TYPE": "depool"},
                                   "WALLET": {"ADDR": WALLET_ADDR}})
