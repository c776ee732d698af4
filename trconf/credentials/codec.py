from __future__ import annotations

import base64
import binascii
import json
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from trconf.credentials.errors import ConfigParseError, DecryptionError, EncryptionError
from trconf.credentials.keys import SecretKeyProvider
from trconf.credentials.models import ConfigurationRecord
from trconf.logging import get_logger

logger = get_logger(__name__)

NONCE_SIZE = 12


class ConfigCodec:
    """
    Seals a ConfigurationRecord into a base64 text blob and back.

    Blob layout: ``base64(nonce || ciphertext || tag)`` with ChaCha20-Poly1305
    and no associated data.
    """

    def __init__(self, key_provider: SecretKeyProvider | None = None) -> None:
        self.key_provider = key_provider or SecretKeyProvider()

    def encrypt(self, record: ConfigurationRecord) -> str:
        try:
            plaintext = json.dumps(record.to_dict(), separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"failed to serialize config: {exc}") from exc

        try:
            aead = ChaCha20Poly1305(self.key_provider.get_or_create_key())
        except ValueError as exc:
            raise EncryptionError(f"failed to create cipher: {exc}") from exc

        nonce = os.urandom(NONCE_SIZE)
        sealed = aead.encrypt(nonce, plaintext, None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, text: str, out_record: ConfigurationRecord) -> ConfigurationRecord:
        """
        Open `text` and copy the result into `out_record`.

        An empty `text` means nothing has been stored yet and leaves
        `out_record` untouched.
        """
        if not text:
            return out_record

        try:
            blob = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecryptionError(f"failed to decode base64: {exc}") from exc

        if len(blob) < NONCE_SIZE:
            raise DecryptionError("ciphertext too short")

        nonce, ciphertext = blob[:NONCE_SIZE], blob[NONCE_SIZE:]
        try:
            aead = ChaCha20Poly1305(self.key_provider.get_or_create_key())
        except ValueError as exc:
            raise DecryptionError(f"failed to create cipher: {exc}") from exc

        try:
            plaintext = aead.decrypt(nonce, ciphertext, None)
        except InvalidTag as exc:
            # Tampering and a different key look the same from here.
            logger.warning("Config authentication failed; stored settings cannot be used.")
            raise DecryptionError("failed to decrypt data: authentication failed") from exc

        try:
            data = json.loads(plaintext.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise ConfigParseError(f"failed to unmarshal config: {exc}") from exc

        out_record.replace_with(ConfigurationRecord.from_dict(data))
        return out_record
