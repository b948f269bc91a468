import asyncio
import logging
from typing import Awaitable, Callable, Tuple, Type

from everstaking.control.exceptions.staking import StakingValidationError

log = logging.getLogger("elections")


def backoff_interval(attempt: int, base: float = 1.0) -> float:
    """
    Delay before the next try after `attempt` failed tries: 1s, 2s, 4s ...
    """
    return base * (2 ** (attempt - 1))


async def retry_async(task: Callable[[], Awaitable], attempts: int, base_interval: float = 1.0,
                      no_retry: Tuple[Type[BaseException], ...] = (StakingValidationError,),
                      name: str = "task"):
    """
    Runs `task` up to `attempts` times with exponential backoff, re-raising the last error.
    """
    if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
        raise StakingValidationError("Retry attempts must be a positive integer, got: {}".format(attempts))
    for attempt in range(1, attempts + 1):
        try:
            return await task()
        except no_retry:
            raise
        except Exception as ex:
            if attempt >= attempts:
                log.error("{} failed after {} attempt(s): {}".format(name, attempt, ex))
                raise
            delay = backoff_interval(attempt, base_interval)
            log.warning("{} attempt {}/{} failed: {}. Retrying in {}s".format(name, attempt, attempts, ex, delay))
            await asyncio.sleep(delay)
