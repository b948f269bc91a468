import json
import os

import pytest

from everstaking.control.datastore.core import Datastore
from everstaking.control.exceptions.staking import StakingValidationError
from everstaking.control.routines.models.elections import ElectionRecord


class TestElectionRecords:

    def test_missing_record_is_blank(self, datastore):
        record = datastore.get_elections_info(1700000000)
        assert record.election_id == 1700000000
        assert record.stake == 0
        assert not record.has_key_material()
        assert not os.path.exists(datastore.path)

    def test_empty_file_is_empty_store(self, tmp_path):
        path = tmp_path / "db.json"
        path.write_text("")
        assert Datastore(str(path)).get_elections_info() == []

    def test_upsert_replaces_record(self, datastore):
        datastore.set_elections_info(ElectionRecord(100, key="k1", adnl_key="a1", stake=5))
        datastore.set_elections_info(ElectionRecord(100, key="k2", adnl_key="a2", stake=7))
        records = datastore.get_elections_info()
        assert len(records) == 1
        assert records[0].key == "k2"
        assert records[0].stake == 7

    def test_inc_stake_adds_up(self, datastore):
        datastore.set_elections_info(ElectionRecord(100, stake=100), inc_stake=True)
        stored = datastore.set_elections_info(ElectionRecord(100, stake=50), inc_stake=True)
        assert stored.stake == 150
        assert datastore.get_elections_info(100).stake == 150

    def test_inc_stake_with_zero_keeps_total(self, datastore):
        datastore.set_elections_info(ElectionRecord(100, stake=100), inc_stake=True)
        stored = datastore.set_elections_info(ElectionRecord(100, stake=0, key="k"), inc_stake=True)
        assert stored.stake == 100
        assert stored.key == "k"

    def test_history_sorted_by_id(self, datastore):
        for election_id in (300, 100, 200):
            datastore.set_elections_info(ElectionRecord(election_id))
        assert [r.election_id for r in datastore.get_elections_info()] == [100, 200, 300]

    def test_non_integer_id_rejected(self, datastore):
        with pytest.raises(StakingValidationError):
            datastore.set_elections_info(ElectionRecord("100"))

    def test_unset_fields_are_not_stored(self, datastore):
        datastore.set_elections_info(ElectionRecord(100, key="k", adnl_key="a"))
        with open(datastore.path) as f:
            stored = json.load(f)["elections"][0]
        assert stored == {"id": 100, "key": "k", "adnl_key": "a", "stake": 0}

    def test_survives_reopen(self, datastore):
        datastore.set_elections_info(ElectionRecord(100, key="k", adnl_key="a", secrets=[None, None],
                                                    public_key="p", signature="s", stake=10,
                                                    last_stake_sending_time=5,
                                                    participation_confirmed=True))
        reopened = Datastore(datastore.path)
        assert reopened.get_elections_info(100) == datastore.get_elections_info(100)
        assert reopened.get_elections_info(100).participation_confirmed

    def test_no_temp_files_left(self, datastore):
        datastore.set_elections_info(ElectionRecord(100))
        assert os.listdir(os.path.dirname(datastore.path)) == ["db.json"]


class TestSettings:

    def test_defaults_when_empty(self, datastore):
        settings = datastore.get_settings()
        assert settings["PARTICIPATION_CONFIRMATION_TIMEOUT"] == 1800
        assert settings["FUNDING"]["TYPE"] == "wallet"
        assert settings["SKIP_NEXT_ELECTIONS"] is False

    def test_partial_update_keeps_stored(self, datastore):
        datastore.set_settings({"FUNDING": {"TYPE": "depool", "ADDR": "0:" + "b" * 64}})
        merged = datastore.set_settings({"FUNDING": {"TICKTOCK_DELAY": 5}})
        assert merged["FUNDING"]["TYPE"] == "depool"
        assert merged["FUNDING"]["TICKTOCK_DELAY"] == 5
        assert merged["FUNDING"]["PROXY_DISCOVERY_ATTEMPTS"] == 3

    def test_skip_next_elections(self, datastore):
        assert datastore.skip_next_elections() is False
        assert datastore.skip_next_elections(True) is True
        assert Datastore(datastore.path).skip_next_elections() is True
        assert datastore.skip_next_elections(False) is False

    def test_next_stake_size(self, datastore):
        assert datastore.next_stake_size() is None
        assert datastore.next_stake_size(10000) == 10000
        assert datastore.next_stake_size(0) is None

    @pytest.mark.parametrize("value", [-1, 1.5, "100", True])
    def test_next_stake_size_rejects_invalid(self, datastore, value):
        with pytest.raises(StakingValidationError):
            datastore.next_stake_size(value)

    def test_addresses(self, datastore):
        datastore.set_settings({"WALLET": {"ADDR": "-1:" + "a" * 64}})
        assert datastore.get_wallet_address() == "-1:" + "a" * 64
        assert datastore.get_funding_address() is None
