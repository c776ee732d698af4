from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from trconf.credentials.codec import ConfigCodec
from trconf.credentials.errors import ConfigIOError, ConfigParseError
from trconf.credentials.keys import KeyringBackend, SecretKeyProvider
from trconf.credentials.models import ConfigurationRecord, EncryptedConfig
from trconf.credentials.paths import get_config_path
from trconf.logging import get_logger
from trconf.runtime.context import RuntimeContext, get_runtime_context
from trconf.runtime.paths import resolve_app_paths

logger = get_logger(__name__)

DIR_MODE = 0o700
FILE_MODE = 0o600


@dataclass(frozen=True)
class Legacy:
    record: ConfigurationRecord


@dataclass(frozen=True)
class Current:
    wrapper: EncryptedConfig


@dataclass(frozen=True)
class Malformed:
    reason: str


DetectedFormat = Union[Legacy, Current, Malformed]


def detect_format(raw: bytes) -> DetectedFormat:
    """
    Classify the bytes of a configuration file.

    A JSON object that reads as a record with a non-empty host is the legacy
    plaintext layout; anything else has to be the encrypted wrapper.
    """
    try:
        data = json.loads(raw)
    except ValueError as exc:
        return Malformed(f"invalid JSON: {exc}")

    try:
        record = ConfigurationRecord.from_dict(data)
    except ConfigParseError:
        record = None
    if record is not None and record.host:
        return Legacy(record)

    try:
        return Current(EncryptedConfig.from_dict(data))
    except ConfigParseError as exc:
        return Malformed(str(exc))


class ConfigStore:
    """
    Loads and saves the configuration file.

    Reads accept both the legacy plaintext layout and the encrypted wrapper;
    writes always produce the wrapper, which is how legacy files get migrated.
    The store keeps no record between calls.
    """

    def __init__(
        self,
        context: RuntimeContext | None = None,
        *,
        codec: ConfigCodec | None = None,
    ) -> None:
        self.context = context or get_runtime_context()
        self.codec = codec or ConfigCodec(SecretKeyProvider(KeyringBackend.for_context(self.context)))

    def resolve_path(self) -> Path:
        return get_config_path(resolve_app_paths(self.context))

    def exists(self) -> bool:
        return self.resolve_path().exists()

    def _read(self, path: Path) -> bytes | None:
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ConfigIOError(f"failed to read config file {path}: {exc}") from exc

    def needs_migration(self) -> bool:
        """True when the file on disk is still in the legacy plaintext layout."""
        path = self.resolve_path()
        raw = self._read(path)
        return raw is not None and isinstance(detect_format(raw), Legacy)

    def load(self) -> ConfigurationRecord | None:
        """Return the stored record, or None when nothing has been saved yet."""
        path = self.resolve_path()
        raw = self._read(path)
        if raw is None:
            logger.debug("No config file at %s", path)
            return None

        detected = detect_format(raw)
        if isinstance(detected, Legacy):
            logger.info("Loaded legacy plaintext config from %s; it will be encrypted on next save.", path)
            return detected.record
        if isinstance(detected, Malformed):
            raise ConfigParseError(f"failed to parse config file {path}: {detected.reason}")

        if not detected.wrapper.encrypted_data:
            logger.debug("Config file %s holds no encrypted data", path)
            return None

        record = self.codec.decrypt(detected.wrapper.encrypted_data, ConfigurationRecord())
        logger.debug("Loaded encrypted config from %s", path)
        return record

    def save(self, record: ConfigurationRecord) -> None:
        path = self.resolve_path()
        try:
            path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigIOError(f"failed to create config directory {path.parent}: {exc}") from exc

        wrapper = EncryptedConfig(encrypted_data=self.codec.encrypt(record))
        payload = json.dumps(wrapper.to_dict(), indent=2).encode("utf-8")

        try:
            self._atomic_write(path, payload)
        except OSError as exc:
            raise ConfigIOError(f"failed to write config file {path}: {exc}") from exc
        logger.info("Saved encrypted config to %s", path)

    def _atomic_write(self, path: Path, payload: bytes) -> None:
        # Write to temp file in same directory so the rename stays on one filesystem
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".config-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_name, FILE_MODE)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
