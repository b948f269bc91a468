import base64
import hashlib
import json
import logging
import os
import re
import tempfile
from typing import Optional

from everstaking.everlibs.toncommon.core import TonExec
from everstaking.everlibs.toncommon.exceptions import TonExecException


log = logging.getLogger("rconsole")


class RustConsole(TonExec):
    KEY_REGEX = re.compile(r'^[0-9A-Fa-f]{64}$')
    NEW_KEY_REGEX = re.compile(r'key hash: (?P<key>[0-9A-Fa-f]{64})')
    EXPORT_PUB_REGEX = re.compile(r'imported key: (?P<key>[0-9A-Fa-f]{64})')
    SIGNATURE_REGEX = re.compile(r'got signature: (?P<signature>[0-9A-Fa-f]{128})')
    ERROR_MESSAGE_REGEX = re.compile(r'ErrorMessage { msg: "(?P<msg>.*)" }')

    def __init__(self, cli_path: str, cwd: str, server_addr: str,
                 server_pub_key: str, client_private_key: str, timeout: int = 60):
        super().__init__(cli_path, timeout=timeout)
        self._cwd = cwd
        self._server_addr = server_addr
        self._server_pub_key = server_pub_key
        self._client_private_key = client_private_key

    def _get_exec_config(self) -> str:
        config_key = f'{self._server_pub_key}.{self._client_private_key}.{self._server_addr}'
        config_path = os.path.join(self._cwd, f"console_{hashlib.md5(config_key.encode()).hexdigest()}.json")
        if not os.path.exists(self._cwd):
            os.makedirs(self._cwd, exist_ok=True)
        if not os.path.exists(config_path) or not os.path.getsize(config_path):
            # create config file if not exist yet
            with open(config_path, "w") as cf:
                cf.write(json.dumps({
                    "config": {
                        "server_address": self._server_addr,
                        "server_key": {
                            "type_id": 1209251014,
                            "pub_key": self._server_pub_key
                        },
                        "client_key": {
                            "type_id": 1209251014,
                            "pvt_key": self._client_private_key
                        },
                        "timeouts": None
                    }
                }, indent=2))
        return config_path

    async def _run_command(self, *commands: str) -> str:
        """
        console -j -C config.json -c "command with parameters" -c "another command"
        """
        args = ["-j", "-C", self._get_exec_config()]
        for command in commands:
            args.extend(["-c", command])
        log.debug("Running: {} {}".format(self._exec_path, list(commands)))
        return await self._run(args, command_name=commands[0].split(" ")[0], cwd=self._cwd)

    @staticmethod
    def _validate_key(key: str, name: str = "key"):
        if not isinstance(key, str) or not RustConsole.KEY_REGEX.match(key):
            raise ValueError("Invalid {} hash: {}".format(name, key))

    @staticmethod
    def _match(regex, out: str, group: str, command: str) -> str:
        m = regex.search(out)
        if not m:
            raise TonExecException("Unexpected output of '{}': {}".format(command, out))
        return m.group(group)

    @staticmethod
    def _parse_json(out: str) -> dict:
        # console may print banner lines before payload
        start = out.find("{")
        if start < 0:
            raise TonExecException("No JSON payload in output: {}".format(out))
        broken_line_regex = re.compile(r'^\s*"(?P<key>.+)":\s+,?$')
        payload = ""
        for line in out[start:].splitlines():
            m = broken_line_regex.match(line)
            if m:
                line = f'"{m.group("key")}": null {"," if line.endswith(",") else ""}'
            payload += line
        return json.loads(payload)

    async def new_key(self) -> str:
        out = await self._run_command("newkey")
        return self._match(self.NEW_KEY_REGEX, out, "key", "newkey")

    async def add_keys_and_validator_addr(self, election_start: int, election_stop: int,
                                          key: str, adnl_key: str):
        self._validate_key(key)
        self._validate_key(adnl_key, "adnl key")
        if not isinstance(election_start, int) or election_start <= 0 or election_stop <= election_start:
            raise ValueError("Invalid election range: [{}, {})".format(election_start, election_stop))
        await self._run_command(f"addpermkey {key} {election_start} {election_stop}",
                                f"addtempkey {key} {key} {election_stop}",
                                f'addadnl {adnl_key} "0"',
                                f"addvalidatoraddr {key} {adnl_key} {election_stop}")

    async def export_pub(self, key: str) -> str:
        self._validate_key(key)
        out = await self._run_command(f"exportpub {key}")
        return self._match(self.EXPORT_PUB_REGEX, out, "key", "exportpub")

    async def sign(self, key: str, request: str) -> str:
        self._validate_key(key)
        if not request:
            raise ValueError("Nothing to sign")
        out = await self._run_command(f"sign {key} {request}")
        return self._match(self.SIGNATURE_REGEX, out, "signature", "sign")

    async def get_stats(self) -> dict:
        """ Ex
        {
            "masterchainblocktime": 1613118553,
            "masterchainblocknumber":       299,
            "timediff":     54033,
            "in_current_vset_p34":  false,
            "in_next_vset_p36":     false
        }
        """
        return self._parse_json(await self._run_command("getstats"))

    async def get_time_diff(self) -> int:
        stats = await self.get_stats()
        if not isinstance(stats.get("timediff"), int):
            raise TonExecException("Failed to get time diff: {}".format(stats))
        return -stats["timediff"]

    async def get_config(self, index: int) -> Optional[dict]:
        data = self._parse_json(await self._run_command(f"getconfig {index}"))
        return data.get(f"p{index}")

    async def get_account(self, address: str) -> dict:
        account = self._parse_json(await self._run_command(f"getaccount {address}"))
        if account.get("acc_type") == "Nonexist":
            raise TonExecException("Account doesn't exist: {}".format(address))
        return account

    async def get_account_state(self, address: str) -> str:
        fd, path = tempfile.mkstemp(suffix="account-state.boc")
        os.close(fd)
        try:
            out = await self._run_command(f"getaccountstate {address} {path}")
            if out.startswith("Error"):
                m = self.ERROR_MESSAGE_REGEX.search(out)
                raise TonExecException(m.group("msg") if m else out)
            with open(path, "rb") as f:
                return base64.b64encode(f.read()).decode()
        finally:
            os.remove(path)

    async def send_message(self, message: str) -> bool:
        """
        :param message: base64 encoded external message BOC
        :return: True if node accepted the message
        """
        fd, path = tempfile.mkstemp(suffix="msg-body.boc")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(base64.b64decode(message))
            out = await self._run_command(f"sendmessage {path}")
        finally:
            os.remove(path)
        success = "success" in out
        if not success:
            log.warning("sendmessage failed: {}".format(out))
        return success
