import struct
import time

from everstaking.control.exceptions.staking import StakingValidationError
from everstaking.everlibs.toncommon.boc import CellBuilder
from everstaking.everlibs.toncommon.models.TonAddress import TonAddress

ELECT_REQUEST_TAG = 0x654C5074
ELECT_SIGNED_TAG = 0x4E73744B
RECOVER_STAKE_TAG = 0x47657424


def encode_max_factor(max_factor) -> int:
    # half-up rounding, max factor is 16.16 fixed point
    return int(max_factor * 65536 + 0.5)


def _hex_bytes(value: str, size: int, name: str) -> bytes:
    try:
        data = bytes.fromhex(value)
    except (TypeError, ValueError):
        raise StakingValidationError("{} must be hex encoded, got: {}".format(name, value))
    if len(data) != size:
        raise StakingValidationError("{} must be {} bytes long, got {}".format(name, size, len(data)))
    return data


def gen_validator_elect_req(wallet_addr: str, election_id: int, max_factor, adnl_key: str) -> str:
    """
    Election request to be signed by validator key:
        0x654C5074 | election_id u32 | max_factor u32 | wallet id 32 bytes | adnl key 32 bytes
    :return: hex encoded request
    """
    if not TonAddress.is_valid(wallet_addr):
        raise StakingValidationError("Invalid wallet address: {}".format(wallet_addr))
    wallet_id = _hex_bytes(TonAddress.get_account_id(wallet_addr), 32, "Wallet id")
    adnl = _hex_bytes(adnl_key, 32, "ADNL key")
    request = struct.pack(">III", ELECT_REQUEST_TAG, election_id, encode_max_factor(max_factor))
    return (request + wallet_id + adnl).hex()


def gen_validator_elect_signed(election_id: int, max_factor, adnl_key: str,
                               public_key: str, signature: str, now: int = None) -> CellBuilder:
    if now is None:
        now = int(time.time())
    signature_cell = CellBuilder().store_bit_string(signature)
    return CellBuilder() \
        .store_uint(ELECT_SIGNED_TAG, 32) \
        .store_uint(now, 64) \
        .store_bit_string(public_key) \
        .store_uint(election_id, 32) \
        .store_uint(encode_max_factor(max_factor), 32) \
        .store_uint(int(adnl_key, 16), 256) \
        .store_ref(signature_cell)


def gen_recover_query(now: int = None) -> CellBuilder:
    if now is None:
        now = int(time.time())
    return CellBuilder().store_uint(RECOVER_STAKE_TAG, 32).store_uint(now, 64)
