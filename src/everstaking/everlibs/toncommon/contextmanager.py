import logging
from contextlib import contextmanager


class SensitiveFilter(logging.Filter):

    def __init__(self, secrets: list):
        super().__init__("sensitive_filter")
        self._secrets = [str(secret) for secret in secrets if secret]

    def _mask(self, value) -> str:
        value = str(value)
        for secret in self._secrets:
            value = value.replace(secret, "***")
        return value

    def filter(self, record: logging.LogRecord) -> int:
        if isinstance(record.msg, str):
            record.msg = self._mask(record.msg)
        if isinstance(record.args, dict):
            record.args = {key: self._mask(val) for key, val in record.args.items()}
        elif record.args:
            record.args = tuple(self._mask(arg) for arg in record.args)
        return True


@contextmanager
def secret_manager(secrets: list):
    # patch handlers not to print secrets
    sensitive_filter = SensitiveFilter(secrets)
    handlers = list(logging.root.handlers)
    for name in list(logging.root.manager.loggerDict):
        logger = logging.getLogger(name)
        handlers.extend(logger.handlers)
    for handler in handlers:
        handler.addFilter(sensitive_filter)
    try:
        yield sensitive_filter
    finally:
        for handler in handlers:
            handler.removeFilter(sensitive_filter)
