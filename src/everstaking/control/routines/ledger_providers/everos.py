import logging

from everstaking.control.exceptions.staking import LedgerException
from everstaking.control.routines.ledger_providers.core import LedgerFacade
from everstaking.everlibs.toncommon.utils import HexUtils

log = logging.getLogger("ledger")

VALIDATOR_SET_FIELDS = "{ utime_since utime_until total total_weight list { public_key adnl_addr weight } }"

CONFIG_PARAM_FIELDS = {
    1: "",
    15: "{ validators_elected_for elections_start_before elections_end_before stake_held_for }",
    16: "{ max_validators max_main_validators min_validators }",
    17: "{ min_stake max_stake min_total_stake max_stake_factor }",
    34: VALIDATOR_SET_FIELDS,
    36: VALIDATOR_SET_FIELDS,
}


class EverosLedger(LedgerFacade):
    """
        Direct API access: config and accounts are read from everos, messages are sent with tonos-cli.
        Has no custody of node keys, so can't restore them.
    """

    async def _get_config_param_impl(self, param_id: int):
        if param_id not in CONFIG_PARAM_FIELDS:
            raise LedgerException("Config param {} is not supported".format(param_id))
        blocks = await self._everos.query_collection("blocks", result="id prev_key_block_seqno",
                                                     order=[{"path": "seq_no", "direction": "DESC"}],
                                                     limit=1)
        seqno = blocks[0].get("prev_key_block_seqno") if blocks else None
        if seqno is None:
            raise LedgerException("Failed to obtain prev_key_block_seqno")
        result = await self._everos.query_collection(
            "blocks",
            result=f"master {{ config {{ p{param_id} {CONFIG_PARAM_FIELDS[param_id]} }} }}",
            filter={"seq_no": {"eq": seqno}, "workchain_id": {"eq": -1}})
        if not result:
            return None
        return ((result[0].get("master") or {}).get("config") or {}).get(f"p{param_id}")

    async def get_account_state(self, addr: str) -> str:
        result = await self._everos.query_collection("accounts", result="boc", filter={"id": {"eq": addr}})
        boc = result[0].get("boc") if result else None
        if not boc:
            raise LedgerException("Failed to get account boc: {}".format(addr))
        return boc

    async def get_account_balance(self, addr: str) -> int:
        result = await self._everos.query_collection("accounts", result="balance", filter={"id": {"eq": addr}})
        if not result or result[0].get("balance") is None:
            raise LedgerException("Account doesn't exist: {}".format(addr))
        return HexUtils.hex_to_int(result[0]["balance"])

    async def _send_message(self, message: str) -> bool:
        out = await self._tonos_cli.send_file(message)
        log.debug("sendfile: {}".format(out))
        return True
