import base64

import pytest

from everstaking.control.exceptions.staking import StakingValidationError
from everstaking.control.routines.payload import encode_max_factor, gen_recover_query, \
    gen_validator_elect_req, gen_validator_elect_signed
from everstaking.everlibs.toncommon.boc import to_boc

WALLET_ID = "a" * 64
ADNL_KEY = "0b" * 32
PUBLIC_KEY = "c" * 64
SIGNATURE = "d" * 128


class TestElectionRequest:

    def test_layout(self):
        request = gen_validator_elect_req("-1:" + WALLET_ID, 1700000000, 3, ADNL_KEY)
        assert request == "654c5074" + "6553f100" + "00030000" + WALLET_ID + ADNL_KEY
        assert len(bytes.fromhex(request)) == 76

    @pytest.mark.parametrize("max_factor, encoded", [
        (1, 0x10000),
        (3, 0x30000),
        (2.5, 0x28000),
        (100, 0x640000),
    ])
    def test_max_factor_fixed_point(self, max_factor, encoded):
        assert encode_max_factor(max_factor) == encoded

    def test_max_factor_rounds_half_up(self):
        # 1.00000763 * 65536 = 65536.5
        assert encode_max_factor(1 + 0.5 / 65536) == 65537

    def test_invalid_wallet(self):
        with pytest.raises(StakingValidationError):
            gen_validator_elect_req("not-an-address", 1700000000, 3, ADNL_KEY)

    @pytest.mark.parametrize("adnl_key", ["xyz", "0b" * 31])
    def test_invalid_adnl_key(self, adnl_key):
        with pytest.raises(StakingValidationError):
            gen_validator_elect_req("-1:" + WALLET_ID, 1700000000, 3, adnl_key)


class TestSignedRequest:

    def test_root_cell_layout(self):
        cell = gen_validator_elect_signed(1700000000, 3, ADNL_KEY, PUBLIC_KEY, SIGNATURE, now=1)
        assert len(cell.bits) == 32 + 64 + 256 + 32 + 32 + 256
        assert cell.data() == bytes.fromhex("4e73744b" + "0000000000000001" + PUBLIC_KEY +
                                            "6553f100" + "00030000" + ADNL_KEY)
        assert len(cell.refs) == 1
        assert cell.refs[0].data() == bytes.fromhex(SIGNATURE)

    def test_boc_holds_two_cells(self):
        cell = gen_validator_elect_signed(1700000000, 3, ADNL_KEY, PUBLIC_KEY, SIGNATURE, now=1)
        boc = to_boc(cell)
        # magic, size bytes, offset bytes, cells count, roots count
        assert boc[:8] == bytes.fromhex("b5ee9c72" + "01" + "01" + "02" + "01")
        # absent count, total size, root index
        root_start = 8 + 3
        # root cell: one reference, 84 full bytes of data
        assert boc[root_start:root_start + 2] == bytes([1, 168])
        assert boc[root_start + 2 + 84] == 1


class TestRecoverQuery:

    def test_layout(self):
        cell = gen_recover_query(now=0x0102030405060708)
        assert cell.data() == bytes.fromhex("47657424" + "0102030405060708")
        assert not cell.refs

    def test_boc(self):
        boc = to_boc(gen_recover_query(now=0))
        assert boc.hex() == "b5ee9c72" + "01" + "01" + "01" + "01" + "00" + "0e" + "00" + \
            "0018" + "47657424" + "0000000000000000"
        assert base64.b64decode(base64.b64encode(boc)) == boc
