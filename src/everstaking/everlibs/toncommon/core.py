import asyncio
import logging

from everstaking.everlibs.toncommon.exceptions import TonExecException

log = logging.getLogger("toncommon")


class TonExec(object):

    def __init__(self, exec_path, timeout=60):
        self._exec_path = exec_path
        self._timeout = timeout

    async def _execute(self, args, cwd=None, timeout=None):
        """
        :param args: args to the wrapped executable
        :return: return value and stdout of the executable
        """
        timeout = timeout or self._timeout
        str_args = [str(arg) for arg in args]
        params = [self._exec_path] + str_args
        try:
            # without stdin attached TON utilities failing
            process = await asyncio.create_subprocess_exec(*params, cwd=cwd,
                                                           stdin=asyncio.subprocess.PIPE,
                                                           stdout=asyncio.subprocess.PIPE,
                                                           stderr=asyncio.subprocess.PIPE)
            try:
                stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
                return 2, f'Cmd: {params} (TIMEOUT {timeout})\n'
            out = stdout.decode().strip()
            retcode = process.returncode
            if retcode != 0:
                out = f'Cmd: {params}, exit code {retcode}\n{out}\n{stderr.decode().strip()}'
        except OSError as e:
            retcode = -1
            out = f'Cmd: {params}\n{e}'
        log.debug(f"Code: {retcode}. Output: {out}")
        return retcode, out

    async def _run(self, args, command_name: str, cwd=None, timeout=None) -> str:
        ret, out = await self._execute(args, cwd=cwd, timeout=timeout)
        if ret != 0:
            raise TonExecException("Failed to run command {}: {}".format(command_name, out), retcode=ret)
        return out
