from __future__ import annotations

import base64
import binascii
import secrets
import socket
from pathlib import Path
from typing import Protocol

import keyring
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from keyring.errors import KeyringError

from trconf.logging import get_logger
from trconf.runtime.context import RuntimeContext, get_runtime_context

logger = get_logger(__name__)

KEY_SIZE = 32
KEYRING_USERNAME = "config-encryption-key"
FALLBACK_SALT = b"transmission-client-salt"
FALLBACK_MACHINE_ID = "transmission-client-machine-id"
FALLBACK_ITERATIONS = 4096

MACHINE_ID_FILES = (Path("/etc/machine-id"), Path("/var/lib/dbus/machine-id"))


class SecretBackend(Protocol):
    """Minimal view of an OS secret store: one opaque value per name."""

    def get(self, name: str) -> bytes | None: ...

    def set(self, name: str, value: bytes) -> None: ...


class KeyringBackend:
    """SecretBackend over python-keyring; names map to keyring usernames under one service."""

    def __init__(self, service: str) -> None:
        self.service = service

    @classmethod
    def for_context(cls, ctx: RuntimeContext | None = None) -> "KeyringBackend":
        ctx = ctx or get_runtime_context()
        return cls(f"{ctx.app_name}{ctx.env.suffix()}")

    def get(self, name: str) -> bytes | None:
        stored = keyring.get_password(self.service, name)
        if not stored:
            return None
        return stored.encode("utf-8")

    def set(self, name: str, value: bytes) -> None:
        keyring.set_password(self.service, name, value.decode("utf-8"))


def machine_id() -> str:
    """Best-effort stable identifier for this machine."""
    for candidate in MACHINE_ID_FILES:
        try:
            value = candidate.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError):
            continue
        if value:
            return value
    try:
        hostname = socket.gethostname()
    except OSError:
        hostname = ""
    return hostname or FALLBACK_MACHINE_ID


def derive_fallback_key(seed: str) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=FALLBACK_SALT,
        iterations=FALLBACK_ITERATIONS,
    )
    return kdf.derive(seed.encode("utf-8"))


class SecretKeyProvider:
    """
    Hands out the single symmetric key used for the configuration file.

    The key lives base64-encoded in the secret store. When nothing usable is
    stored a new key is generated and written back; failures along the way
    are logged and never reach the caller. Once obtained, the key is kept for
    the lifetime of this provider so a process always reads back what it
    wrote, even if the store refused the new key.
    """

    def __init__(
        self,
        backend: SecretBackend | None = None,
        *,
        name: str = KEYRING_USERNAME,
    ) -> None:
        self.backend: SecretBackend = backend if backend is not None else KeyringBackend.for_context()
        self.name = name
        self._key: bytes | None = None

    def get_or_create_key(self) -> bytes:
        if self._key is None:
            self._key = self._load_key() or self._create_key()
        return self._key

    def _load_key(self) -> bytes | None:
        try:
            stored = self.backend.get(self.name)
        except (KeyringError, OSError, RuntimeError) as exc:
            logger.warning("Secret store lookup failed; a new key will be generated: %s", exc)
            return None
        if not stored:
            logger.debug("No encryption key in secret store.")
            return None
        try:
            key = base64.b64decode(stored, validate=True)
        except (binascii.Error, ValueError):
            logger.warning("Stored encryption key is not valid base64; ignoring it.")
            return None
        if len(key) != KEY_SIZE:
            logger.warning("Stored encryption key has length %d, expected %d; ignoring it.", len(key), KEY_SIZE)
            return None
        return key

    def _create_key(self) -> bytes:
        try:
            key = secrets.token_bytes(KEY_SIZE)
        except (OSError, NotImplementedError) as exc:
            logger.warning("Secure random source unavailable (%s); deriving key from machine id.", exc)
            key = derive_fallback_key(machine_id())
        else:
            logger.info("Generated new configuration encryption key.")

        try:
            self.backend.set(self.name, base64.b64encode(key))
        except (KeyringError, OSError, RuntimeError) as exc:
            logger.warning("Failed to store encryption key in secret store: %s", exc)
        return key
