import base64
import json

import pytest
import rsa

from everstaking.control.secrets.envprovider.core import EnvSecretProvider, SecretManager

WALLET_ADDR = "-1:" + "a" * 64


@pytest.fixture(scope="module")
def key_pair():
    return rsa.newkeys(1024)


def encrypt(value: str, public_key) -> str:
    return base64.encodebytes(rsa.encrypt(value.encode(), public_key)).decode()


class TestEnvSecretProvider:

    def test_plain_keys(self, tmp_path):
        provider = SecretManager(json.dumps({
            "wallet_address": WALLET_ADDR,
            "wallet_keys": {"public": "1" * 64, "secret": "2" * 64}
        }), str(tmp_path))
        assert provider.get_wallet_address() == WALLET_ADDR
        assert provider.get_wallet_keys() == {"public": "1" * 64, "secret": "2" * 64}

    def test_encrypted_secrets(self, tmp_path, key_pair):
        public_key, private_key = key_pair
        (tmp_path / "control.pem").write_bytes(private_key.save_pkcs1())
        provider = EnvSecretProvider(json.dumps({
            "wallet_address": WALLET_ADDR,
            "wallet_keys": {"public": "1" * 64, "secret": encrypt("2" * 64, public_key)},
            "encryption_key_name": "control.pem",
            "secrets": {"webhook_token": encrypt("token", public_key)}
        }), str(tmp_path))
        assert provider.get_wallet_keys()["secret"] == "2" * 64
        assert provider.get_secret_by_name("webhook_token") == "token"
        assert provider.get_secret_by_name("missing") is None

    def test_missing_encryption_key(self, tmp_path):
        with pytest.raises(Exception):
            EnvSecretProvider(json.dumps({"encryption_key_name": "absent.pem"}), str(tmp_path))

    def test_no_wallet_keys(self, tmp_path):
        assert EnvSecretProvider("{}", str(tmp_path)).get_wallet_keys() is None
