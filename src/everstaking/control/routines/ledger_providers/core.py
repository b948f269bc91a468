import logging
import time
from typing import List, Optional, Tuple

from everstaking.control.exceptions.staking import LedgerException, StakingException, \
    UnsupportedCapabilityException
from everstaking.control.routines.ledger_providers.queue import RunGetQueue
from everstaking.control.routines.models.elections import ElectionRecord
from everstaking.everlibs.everos.core import EverosClient
from everstaking.everlibs.rustconsole.core import RustConsole
from everstaking.everlibs.toncommon.boc import CellBuilder, to_boc_base64
from everstaking.everlibs.toncommon.models.DePoolEvent import DePoolEvent
from everstaking.everlibs.toncommon.models.ElectionData import ElectionMember, ParticipantList
from everstaking.everlibs.toncommon.models.TonAddress import TonAddress
from everstaking.everlibs.toncommon.utils import HexUtils, unwrap_cons_list
from everstaking.everlibs.tonoscli.core import TonosCli

log = logging.getLogger("ledger")


class LedgerFacade(object):
    """
        Ledger access used by staking policy. Providers differ only in how config, account data
        and outgoing messages travel; elector reads, key operations and encoding are shared.
    """
    # validator sets change every election cycle
    FRESH_CONFIG_PARAMS = frozenset({34, 36})
    DEFAULT_ELECTOR_ADDR = "-1:" + "3" * 64
    DEFAULT_VALIDATION_PERIOD = 65536
    DEFAULT_ELECTIONS_START_BEFORE = 32768
    DEFAULT_MIN_STAKE = 0x9184e72a000
    DEPOOL_EVENTS_LOOKBACK = 24 * 60 * 60

    def __init__(self, console: RustConsole, tonos_cli: TonosCli, everos: EverosClient,
                 wallet_addr: str, wallet_keys: Optional[dict], wallet_abi_path: str):
        self._console = console
        self._tonos_cli = tonos_cli
        self._everos = everos
        self._wallet_addr = wallet_addr
        self._wallet_keys = wallet_keys
        self._wallet_abi_path = wallet_abi_path
        self._config_cache = {}
        self._run_get_queue = RunGetQueue(self._run_get_impl)

    # provider specific

    async def _get_config_param_impl(self, param_id: int):
        raise NotImplementedError

    async def get_account_state(self, addr: str) -> str:
        raise NotImplementedError

    async def get_account_balance(self, addr: str) -> int:
        raise NotImplementedError

    async def _send_message(self, message: str) -> bool:
        raise NotImplementedError

    async def restore_keys(self, record: ElectionRecord):
        raise UnsupportedCapabilityException(
            "Keys restoration is not supported by {}".format(self.__class__.__name__))

    # config

    async def get_config_param(self, param_id: int):
        if param_id in self.FRESH_CONFIG_PARAMS:
            return await self._get_config_param_impl(param_id)
        if param_id not in self._config_cache:
            value = await self._get_config_param_impl(param_id)
            if value is None:
                return None
            self._config_cache[param_id] = value
        return self._config_cache[param_id]

    async def get_elector_address(self) -> str:
        addr = await self.get_config_param(1)
        if not addr:
            return self.DEFAULT_ELECTOR_ADDR
        return TonAddress.set_address_prefix(str(addr), TonAddress.Type.MASTER_CHAIN)

    async def get_validation_period(self) -> int:
        p15 = await self.get_config_param(15) or {}
        return int(p15.get("validators_elected_for") or self.DEFAULT_VALIDATION_PERIOD)

    async def get_elections_start_before(self) -> int:
        p15 = await self.get_config_param(15) or {}
        return int(p15.get("elections_start_before") or self.DEFAULT_ELECTIONS_START_BEFORE)

    async def get_min_stake(self) -> int:
        p17 = await self.get_config_param(17) or {}
        if p17.get("min_stake") is None:
            return self.DEFAULT_MIN_STAKE
        return HexUtils.hex_to_int(p17["min_stake"])

    async def get_validators(self) -> List[dict]:
        p34 = await self.get_config_param(34) or {}
        return p34.get("list") or []

    # elector get-methods

    async def _run_get_impl(self, function_name: str, args: Tuple) -> list:
        account = await self.get_account_state(await self.get_elector_address())
        return await self._tonos_cli.run_get(account, function_name, list(args)) or []

    async def run_get(self, function_name: str, args: List = None) -> list:
        return await self._run_get_queue.submit(function_name, tuple(args or ()))

    async def _run_get_int(self, function_name: str, args: List = None) -> int:
        output = await self.run_get(function_name, args)
        if not output or output[0] is None:
            raise LedgerException("Failed to get {} value".format(function_name))
        return HexUtils.hex_to_int(output[0])

    async def get_active_election_id(self) -> int:
        return await self._run_get_int("active_election_id")

    async def get_past_election_ids(self) -> List[int]:
        output = await self.run_get("past_election_ids")
        value = output[0] if output else None
        if isinstance(value, list) and len(value) == 2 and (value[1] is None or isinstance(value[1], list)):
            value = unwrap_cons_list(value)
        ids = []
        for item in value or []:
            try:
                ids.append(HexUtils.hex_to_int(item))
            except (TypeError, ValueError):
                continue
        return ids

    async def participates_in(self, public_key: str) -> int:
        return await self._run_get_int("participates_in", [f"0x{public_key}"])

    async def compute_returned_stake(self, account_id: str) -> int:
        return await self._run_get_int("compute_returned_stake", [f"0x{account_id}"])

    async def get_participant_list_extended(self) -> ParticipantList:
        output = await self.run_get("participant_list_extended")
        elect_at, elect_close, min_stake, total_stake, cons, failed, finished = (list(output) + [None] * 7)[:7]
        participants = []
        for participant_id, (stake, max_factor, addr, adnl_addr) in unwrap_cons_list(cons):
            participants.append(ElectionMember(id=participant_id,
                                               stake=HexUtils.hex_to_int(stake),
                                               max_factor=HexUtils.hex_to_int(max_factor),
                                               addr=addr,
                                               adnl_addr=adnl_addr))
        return ParticipantList(elect_at=HexUtils.hex_to_int(elect_at or 0),
                               elect_close=HexUtils.hex_to_int(elect_close or 0),
                               min_stake=HexUtils.hex_to_int(min_stake or 0),
                               total_stake=HexUtils.hex_to_int(total_stake or 0),
                               participants=participants,
                               failed=HexUtils.hex_to_int(failed or 0),
                               finished=HexUtils.hex_to_int(finished or 0))

    async def get_past_elections(self) -> list:
        return await self.run_get("past_elections")

    # node keys

    async def get_new_key_pair(self) -> Tuple[str, Optional[str]]:
        # node console never reveals secret part of generated key
        return await self._console.new_key(), None

    async def add_keys_and_validator_addr(self, election_start: int, validation_period: int,
                                          key: str, adnl_key: str):
        await self._console.add_keys_and_validator_addr(election_start, election_start + validation_period,
                                                        key, adnl_key)

    async def export_pub(self, key: str) -> str:
        return await self._console.export_pub(key)

    async def sign_request(self, key: str, request: str) -> str:
        return await self._console.sign(key, request)

    async def get_time_diff(self) -> int:
        return await self._console.get_time_diff()

    # messages

    def encode_boc(self, builder: CellBuilder) -> str:
        return to_boc_base64(builder)

    async def encode_ticktock_body(self, abi_path: str) -> str:
        return await self._tonos_cli.encode_body(abi_path, "ticktock")

    async def submit_transaction(self, params: dict) -> dict:
        """
        Single attempt to send `submitTransaction` external message to validator wallet.
        :param params: {"dest", "value", "bounce", "allBalance", "payload"}
        """
        if not self._wallet_keys or not self._wallet_keys.get("secret"):
            raise StakingException("Wallet keys are not configured")
        log.info("Submitting transaction to {}, value {}".format(params.get("dest"), params.get("value")))
        message = await self._tonos_cli.encode_message(self._wallet_addr, self._wallet_abi_path,
                                                       "submitTransaction", params, keys=self._wallet_keys)
        success = await self._send_message(message)
        return {"success": bool(success)}

    # everos queries

    async def find_depool_event(self, depool_addr: str, abi_path: str, name: str,
                                election_id: int = None) -> Optional[DePoolEvent]:
        """
        Last event with given name emitted by DePool within last 24 hours.
        """
        messages = await self._everos.query_collection(
            "messages", result="id body created_at",
            filter={
                "src": {"eq": depool_addr},
                "msg_type": {"eq": 2},
                "created_at": {"gt": int(time.time()) - self.DEPOOL_EVENTS_LOOKBACK}
            },
            order=[{"path": "created_at", "direction": "ASC"}])
        found = None
        for message in messages:
            if not message.get("body"):
                continue
            event_name, data = await self._tonos_cli.decode_body(abi_path, message["body"])
            if event_name != name:
                continue
            event = DePoolEvent.create(message.get("id"), event_name, data,
                                       created_at=message.get("created_at") or 0)
            if election_id is not None and getattr(event, "election_id", None) != election_id:
                continue
            found = event
        return found

    async def count_blocks_signatures(self, interval: int, node_ids: List[str]) -> int:
        now = int(time.time())
        node_ids = [node_id.lower() for node_id in node_ids if node_id]
        if not node_ids:
            return 0
        node_filter = {"node_id": {"eq": node_ids[0]}}
        for node_id in node_ids[1:]:
            node_filter = {"node_id": {"eq": node_id}, "OR": node_filter}
        result = await self._everos.query_collection(
            "blocks_signatures", result="id",
            filter={
                "gen_utime": {"gt": now - interval, "le": now},
                "signatures": {"any": node_filter}
            })
        return len(result)

    async def close(self):
        await self._run_get_queue.close()
