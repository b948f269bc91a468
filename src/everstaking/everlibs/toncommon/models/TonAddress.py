import re


class TonAddress(object):
    ADDRESS_REGEX = re.compile(r'^-?[0-9]+:[0-9a-fA-F]{64}$')

    class Type:
        MASTER_CHAIN = "-1:"
        BASE_CHAIN = "0:"

    def __init__(self, address: str):
        if not TonAddress.is_valid(address):
            raise ValueError("Invalid address: {}".format(address))
        self.address = address
        workchain, self.account_id = address.split(":")
        self.workchain = int(workchain)

    @staticmethod
    def is_valid(adr) -> bool:
        return isinstance(adr, str) and bool(TonAddress.ADDRESS_REGEX.match(adr))

    @staticmethod
    def get_account_id(adr: str) -> str:
        return TonAddress(adr).account_id

    @staticmethod
    def get_short_address(adr: str):
        if adr:
            return '{}..{}'.format(adr[:6], adr[-3:])
        return '[missing adr]'

    @staticmethod
    def set_address_prefix(adr: str, prefix):
        # drop the workchain part if present
        if ":" in adr:
            adr = adr.split(":", 1)[1]
        adr = adr.replace("0x", "", 1)
        return f"{prefix}{adr}"

    def __str__(self):
        return self.address
