import base64
import json
import os

import rsa
from rsa import PrivateKey

from everstaking.control.secrets.interfaces.secretmanager import SecretManagerAbstract


class EnvSecretProvider(SecretManagerAbstract):
    """
    Connection string example:
        {"wallet_address": "-1:...", "wallet_keys": {"public": "...", "secret": "<encrypted>"},
         "encryption_key_name": "control.pem", "secrets": {"webhook_token": "<encrypted>"}}
    Secrets are RSA encrypted and base64 encoded when `encryption_key_name` is set.
    """

    def __init__(self, connection_string, keys_folder):
        super().__init__(connection_string, keys_folder)
        self._data = json.loads(connection_string)
        self._private_key = None
        if self._data.get("encryption_key_name"):
            key_path = os.path.join(keys_folder, self._data.get("encryption_key_name"))
            if not os.path.exists(key_path):
                raise Exception("Couldn't initialize environment-based secret-manager, as encryption key with name {} do not exist.".format(
                    self._data.get("encryption_key_name")))
            with open(key_path, "rb") as f:
                # PEM key
                self._private_key = PrivateKey.load_pkcs1(f.read())

    def _decrypt(self, data: str) -> str:
        return rsa.decrypt(base64.decodebytes(data.encode()), self._private_key).decode().strip()

    def _reveal(self, data: str) -> str:
        if data and self._private_key:
            return self._decrypt(data)
        return data.strip() if data else data

    def get_wallet_address(self):
        return self._data.get("wallet_address")

    def get_wallet_keys(self) -> dict:
        keys = self._data.get("wallet_keys") or {}
        if not keys:
            return None
        return {
            "public": keys.get("public"),
            "secret": self._reveal(keys.get("secret"))
        }

    def get_secret_by_name(self, name: str) -> str:
        return self._reveal((self._data.get("secrets") or {}).get(name))


class SecretManager(EnvSecretProvider):
    pass
