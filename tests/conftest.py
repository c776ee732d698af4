from __future__ import annotations

import pytest
from keyring.errors import KeyringError, PasswordSetError

from trconf.credentials.codec import ConfigCodec
from trconf.credentials.keys import SecretKeyProvider
from trconf.credentials.store import ConfigStore
from trconf.runtime.context import RuntimeContext
from trconf.runtime.env import Environment


class MemorySecretBackend:
    def __init__(
        self,
        initial: dict | None = None,
        *,
        fail_get: bool = False,
        fail_set: bool = False,
    ) -> None:
        self.values = dict(initial or {})
        self.fail_get = fail_get
        self.fail_set = fail_set
        self.set_calls = 0

    def get(self, name: str) -> bytes | None:
        if self.fail_get:
            raise KeyringError("keychain locked")
        return self.values.get(name)

    def set(self, name: str, value: bytes) -> None:
        self.set_calls += 1
        if self.fail_set:
            raise PasswordSetError("keychain is read-only")
        self.values[name] = value


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep every test away from the real config directory and OS keychain."""
    monkeypatch.setenv("TRCONF_DIR", str(tmp_path / "default-root"))
    monkeypatch.setenv("TRCONF_ENV", "test")

    fake_keyring: dict = {}

    def fake_get(service, username):
        return fake_keyring.get((service, username))

    def fake_set(service, username, password):
        fake_keyring[(service, username)] = password

    monkeypatch.setattr("trconf.credentials.keys.keyring.get_password", fake_get)
    monkeypatch.setattr("trconf.credentials.keys.keyring.set_password", fake_set)
    return fake_keyring


@pytest.fixture()
def secret_backend():
    return MemorySecretBackend()


@pytest.fixture()
def key_provider(secret_backend):
    return SecretKeyProvider(secret_backend)


@pytest.fixture()
def codec(key_provider):
    return ConfigCodec(key_provider)


@pytest.fixture()
def context(tmp_path):
    return RuntimeContext(env=Environment.TEST, root_override=tmp_path)


@pytest.fixture()
def store(context, codec):
    return ConfigStore(context, codec=codec)
