import logging

from everstaking.control.exceptions.staking import MissingKeyMaterialException
from everstaking.control.routines.ledger_providers.core import LedgerFacade
from everstaking.control.routines.models.elections import ElectionRecord
from everstaking.everlibs.toncommon.utils import HexUtils

log = logging.getLogger("ledger")


class ConsoleLedger(LedgerFacade):
    """
        Node administrative console is used for every ledger interaction it supports.
    """

    async def _get_config_param_impl(self, param_id: int):
        return await self._console.get_config(param_id)

    async def get_account_state(self, addr: str) -> str:
        return await self._console.get_account_state(addr)

    async def get_account_balance(self, addr: str) -> int:
        account = await self._console.get_account(addr)
        return HexUtils.hex_to_int(account.get("balance", 0))

    async def _send_message(self, message: str) -> bool:
        return await self._console.send_message(message)

    async def restore_keys(self, record: ElectionRecord):
        if not record.has_key_material():
            raise MissingKeyMaterialException(record.election_id)
        validation_period = await self.get_validation_period()
        log.info("Registering keys of election {} again".format(record.election_id))
        await self.add_keys_and_validator_addr(record.election_id, validation_period,
                                               record.key, record.adnl_key)
