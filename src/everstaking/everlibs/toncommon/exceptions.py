

class TonExecException(Exception):

    def __init__(self, message: str, retcode: int = None):
        super().__init__(message)
        self.retcode = retcode


class EverosException(Exception):
    pass
