import base64
import hashlib
import json
import logging
import os
import re
import tempfile
from typing import List, Optional, Tuple

from everstaking.everlibs.toncommon.contextmanager import secret_manager
from everstaking.everlibs.toncommon.core import TonExec
from everstaking.everlibs.toncommon.exceptions import TonExecException

log = logging.getLogger("tonoscli")


class TonosCli(TonExec):
    """
    Python wrapper for tonos CLI
    """
    CONFIG_NAME = "tonos-cli.conf.json"
    DECODED_NAME_REGEX = re.compile(r'^\s*"?(?P<name>[A-Za-z_][A-Za-z0-9_]*)"?\s*:\s*{\s*$')

    def __init__(self, cli_path, cwd, config_url, timeout: int = 60):
        super().__init__(cli_path, timeout=timeout)
        h = hashlib.md5(f"{cli_path}.{config_url}".encode())
        self._cwd = os.path.join(cwd, h.hexdigest())
        self._config_url = config_url

    async def _run_command(self, command: str, options: list = None, retries=5) -> str:
        """
        ./tonos-cli <command> <options>
        """
        if not os.path.exists(os.path.join(self._cwd, TonosCli.CONFIG_NAME)):
            os.makedirs(self._cwd, exist_ok=True)
            for i in range(retries):
                ret, out = await self._execute(["config", "--url", self._config_url], cwd=self._cwd)
                if ret != 0:
                    if out and "timeout" in out.lower():
                        log.info("Retrying tonos command due to timeout")
                        continue
                    if not os.path.exists(os.path.join(self._cwd, TonosCli.CONFIG_NAME)):
                        raise TonExecException("Failed to initialize tonos-cli: {}".format(out), retcode=ret)
                break
        if options is None:
            options = []
        args = [command] + options
        log.debug("Running: {} {}".format(self._exec_path, args))
        return await self._run(args, command_name=command, cwd=self._cwd)

    @staticmethod
    def _parse_result(output: str) -> Optional[object]:
        result_keyword = 'Result: '
        if result_keyword in output:
            substr = output[output.find(result_keyword) + len(result_keyword):]
            return json.loads(substr)
        return None

    async def run_get(self, account_boc: str, method: str, params: List[str] = None) -> Optional[list]:
        """
        Executes get-method locally over given account state.
        :param account_boc: base64 encoded account state
        :param method: get-method name, ex: participant_list_extended
        :param params: plain get-method arguments
        :return: decoded stack, ex: ["0x6553f100"]
        """
        fd, path = tempfile.mkstemp(suffix="account.boc")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(base64.b64decode(account_boc))
            out = await self._run_command("runget", ["--boc", path, method] + [str(p) for p in params or []])
        finally:
            os.remove(path)
        return self._parse_result(out)

    async def encode_body(self, abi_path: str, method: str, params: dict = None) -> str:
        out = await self._run_command("body", ["--abi", abi_path, method, json.dumps(params or {})])
        keyword = "Message body:"
        if keyword not in out:
            raise TonExecException("Failed to encode body for {}: {}".format(method, out))
        return out[out.find(keyword) + len(keyword):].strip().splitlines()[0].strip()

    async def encode_message(self, address: str, abi_path: str, method: str, params: dict,
                             keys: dict) -> str:
        """
        Encodes and signs external message to the contract without sending it.
        :param keys: {"public": hex, "secret": hex}
        :return: base64 encoded message BOC
        """
        fd, keys_path = tempfile.mkstemp(suffix="keys.json")
        msg_fd, msg_path = tempfile.mkstemp(suffix="message.boc")
        os.close(msg_fd)
        try:
            with os.fdopen(fd, "w") as f:
                f.write(json.dumps(keys))
            with secret_manager(secrets=[keys.get("secret")]):
                await self._run_command("message", ["--raw", "--output", msg_path,
                                                    "--abi", abi_path, "--sign", keys_path,
                                                    address, method, json.dumps(params)])
            with open(msg_path, "rb") as f:
                return base64.b64encode(f.read()).decode()
        finally:
            os.remove(keys_path)
            os.remove(msg_path)

    async def send_file(self, message: str) -> str:
        fd, path = tempfile.mkstemp(suffix="message.boc")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(base64.b64decode(message))
            return await self._run_command("sendfile", [path])
        finally:
            os.remove(path)

    async def decode_body(self, abi_path: str, body: str) -> Tuple[Optional[str], Optional[dict]]:
        """ ex:
            StakeSigningRequested: {
              "electionId": "1700000000",
              "proxy": "-1:2e7f..."
            }
        """
        out = await self._run_command("decode", ["body", "--abi", abi_path, body])
        name = None
        payload_lines = []
        depth = 0
        for line in out.splitlines():
            if name is None:
                m = self.DECODED_NAME_REGEX.match(line)
                if m:
                    name = m.group("name")
                    payload_lines.append("{")
                    depth = 1
                continue
            payload_lines.append(line)
            depth += line.count("{") - line.count("}")
            if depth <= 0:
                break
        if name is None:
            return None, None
        return name, json.loads("\n".join(payload_lines))
