

class SecretManagerAbstract(object):

    def __init__(self, connection_string, keys_folder):
        self._connection_string = connection_string
        self._keys_folder = keys_folder

    def get_wallet_address(self):
        # not really a secret, but more convenient to store next to keys
        raise NotImplementedError("Implement this method")

    def get_wallet_keys(self) -> dict:
        """
        Keys used to sign validator wallet transactions
        :return: {"public": hex, "secret": hex}
        """
        raise NotImplementedError("Implement this method")

    def get_secret_by_name(self, name: str) -> str:
        raise NotImplementedError("Implement this method")
