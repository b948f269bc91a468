

class StakingException(Exception):
    pass


class StakingValidationError(StakingException, ValueError):
    """
    Caller misuse: malformed address, amount or attempt count. Never retried.
    """
    pass


class LedgerException(StakingException):
    pass


class TransactionFailedException(LedgerException):

    def __init__(self, message: str, dest: str = None):
        super().__init__(message)
        self.dest = dest


class ProxyDiscoveryException(LedgerException):

    def __init__(self, message: str, election_id: int = None, attempts: int = 0):
        super().__init__(f"{message} (election {election_id}, attempts {attempts})")
        self.election_id = election_id
        self.attempts = attempts


class InsufficientBalanceException(StakingException):

    def __init__(self, message: str, balance: int, required: int):
        super().__init__(f"{message}. Balance {balance}, need to have {required} nanotokens.")
        self.balance = balance
        self.required = required


class UnsupportedCapabilityException(StakingException):
    pass


class MissingKeyMaterialException(StakingException):

    def __init__(self, election_id: int):
        super().__init__(f"Key material of election {election_id} is missing, "
                         f"node was restarted before keys could be restored")
        self.election_id = election_id
