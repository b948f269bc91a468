import copy
import logging
import os
import time
from typing import List, Optional

from everstaking.control.datastore.core import Datastore
from everstaking.control.routines.elections import StakingManagementPolicy
from everstaking.control.routines.funding_providers.core import FundingStrategy
from everstaking.control.routines.funding_providers.depool import DePoolFunding
from everstaking.control.routines.funding_providers.wallet import WalletFunding
from everstaking.control.routines.ledger_providers.console import ConsoleLedger
from everstaking.control.routines.ledger_providers.core import LedgerFacade
from everstaking.control.routines.ledger_providers.everos import EverosLedger
from everstaking.control.routines.submission import StakeSubmitter
from everstaking.control.secrets.interfaces.secretmanager import SecretManagerAbstract
from everstaking.control.settings.core import StakingSettings
from everstaking.control.settings.funding import FundingType
from everstaking.control.webhook.client import WebhookClient
from everstaking.everlibs.everos.core import EverosClient
from everstaking.everlibs.rustconsole.core import RustConsole
from everstaking.everlibs.toncommon.models.ElectionData import ParticipantList
from everstaking.everlibs.toncommon.utils import HexUtils, unwrap_cons_list
from everstaking.everlibs.tonoscli.core import TonosCli

log = logging.getLogger("elections")


class StakingManager(StakingManagementPolicy):
    """
        Staking policy plus operator and statistics operations
    """

    def __init__(self, ledger: LedgerFacade, datastore: Datastore, funding: FundingStrategy,
                 submitter: StakeSubmitter, notifier: WebhookClient, settings: StakingSettings, clock=time.time):
        super().__init__(ledger, datastore, funding, submitter, notifier, clock=clock)
        self._settings = settings

    @property
    def settings(self) -> StakingSettings:
        return self._settings

    def get_elections_history(self) -> List[dict]:
        return [record.to_history() for record in self._datastore.get_elections_info()]

    def skip_next_elections(self, skip: bool) -> bool:
        return self._datastore.skip_next_elections(skip)

    def set_next_stake_size(self, value: int) -> Optional[int]:
        result = self._datastore.next_stake_size(value)
        log.info("Stake size is set to {}".format(value))
        return result

    async def get_participant_list_extended(self) -> ParticipantList:
        return await self._ledger.get_participant_list_extended()

    def _latest_records(self, count: int = 2):
        return self._datastore.get_elections_info()[-count:]

    async def count_blocks_signatures(self, interval: int) -> int:
        keys = [record.key for record in self._latest_records() if record.key]
        return await self._ledger.count_blocks_signatures(interval, keys)

    @staticmethod
    def _weight(data: dict, field: str) -> Optional[int]:
        if data.get(f"{field}_dec") is not None:
            return int(data[f"{field}_dec"])
        if data.get(field) is not None:
            return int(str(data[field]), 16)
        return None

    async def get_latest_stake_and_weight(self) -> dict:
        public_keys = [(record.public_key or "").lower() for record in self._latest_records()]
        p34 = await self._ledger.get_config_param(34) or {}
        total_weight = self._weight(p34, "total_weight")
        weights = []
        for public_key in public_keys:
            validator = next((v for v in p34.get("list") or []
                              if str(v.get("public_key", "")).lower() == public_key), None)
            weight = self._weight(validator, "weight") if validator and public_key else None
            weights.append(weight / total_weight if weight is not None and total_weight else None)
        weight_id = next((i for i, w in enumerate(weights) if w is not None), None)
        if weight_id is None:
            return {"stake": 0, "weight": 0}
        past_elections = await self._ledger.get_past_elections()
        total_stakes = [HexUtils.hex_to_int(election[5])
                        for election in unwrap_cons_list(past_elections[0] if past_elections else None)]
        total_stake = total_stakes[weight_id % len(total_stakes)] if total_stakes else 0
        weight = weights[weight_id]
        return {"stake": total_stake * weight, "weight": weight}

    async def get_wallet_balance(self) -> int:
        return await self._ledger.get_account_balance(self._datastore.get_wallet_address())

    async def get_time_diff(self) -> int:
        return await self._ledger.get_time_diff()

    async def close(self):
        await self._ledger.close()

    @staticmethod
    def create(config: dict, secret_manager: SecretManagerAbstract = None) -> 'StakingManager':
        """
        Merges given settings into the stored ones and composes manager according to the result.
        Wallet keys are kept in memory only.
        :param config: partial settings, ex: {"WALLET": {"ADDR": "-1:..."}, "FUNDING": {"TYPE": "depool"}}
        """
        config = copy.deepcopy(config or {})
        wallet_config = config.setdefault("WALLET", {})
        keys = wallet_config.pop("KEYS", None)
        if secret_manager:
            keys = keys or secret_manager.get_wallet_keys()
            wallet_config["ADDR"] = wallet_config.get("ADDR") or secret_manager.get_wallet_address()
        datastore = Datastore(config.get("DATASTORE_PATH") or StakingSettings.DATASTORE_PATH)
        settings = StakingSettings.create(datastore.set_settings(config))
        settings.WALLET.KEYS = keys
        settings.validate()
        log.debug("Settings in use: \n {}".format(settings))

        console = RustConsole(settings.CONSOLE.EXEC_PATH, cwd=os.path.join(settings.TOOLS_CWD_BASE, "console"),
                              server_addr=settings.CONSOLE.SERVER_ADDRESS,
                              server_pub_key=settings.CONSOLE.SERVER_PUBLIC_KEY,
                              client_private_key=settings.CONSOLE.CLIENT_PRIVATE_KEY,
                              timeout=settings.CONSOLE.TIMEOUT)
        tonos_cli = TonosCli(settings.TONOS_CLI.EXEC_PATH, cwd=os.path.join(settings.TOOLS_CWD_BASE, "tonos"),
                             config_url=settings.TONOS_CLI.CONFIG_URL, timeout=settings.TONOS_CLI.TIMEOUT)
        everos = EverosClient(settings.EVEROS.ENDPOINTS, query_timeout=settings.EVEROS.QUERY_TIMEOUT)
        ledger_cls = ConsoleLedger if settings.CONSOLE.MAXIMIZE_USAGE else EverosLedger
        log.info("Ledger access provider: {}".format(ledger_cls.__name__))
        ledger = ledger_cls(console, tonos_cli, everos,
                            wallet_addr=settings.WALLET.ADDR,
                            wallet_keys=settings.WALLET.KEYS,
                            wallet_abi_path=settings.WALLET.ABI_PATH)
        submitter = StakeSubmitter(ledger, datastore)
        funding_cls = DePoolFunding if settings.FUNDING.TYPE == FundingType.DEPOOL else WalletFunding
        log.info("Funding type: {}".format(settings.FUNDING.TYPE))
        funding = funding_cls(ledger, datastore, settings, submitter)
        return StakingManager(ledger, datastore, funding, submitter, WebhookClient(settings.WEBHOOK), settings)
