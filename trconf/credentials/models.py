from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from trconf.credentials.errors import ConfigParseError

DEFAULT_PORT = 9091
THEMES = ("light", "dark", "auto")
SPEED_UNITS = ("KiB/s", "MiB/s")

ENCRYPTED_DATA_KEY = "encryptedData"


@dataclass
class ConfigurationRecord:
    """
    Everything the client remembers between runs.

    Attribute names are Python-style; `JSON_KEYS` maps them to the keys used
    on disk, which are shared with the legacy plaintext layout.
    """

    host: str = ""
    port: int = DEFAULT_PORT
    username: str = ""
    password: str = ""
    language: str = ""
    theme: str = "light"
    max_upload_ratio: float = 0.0
    slow_speed_limit: int = 50
    slow_speed_unit: str = "KiB/s"
    default_download_path: str = ""
    download_paths: list[str] = field(default_factory=list)

    JSON_KEYS = {
        "host": "host",
        "port": "port",
        "username": "username",
        "password": "password",
        "language": "language",
        "theme": "theme",
        "max_upload_ratio": "maxUploadRatio",
        "slow_speed_limit": "slowSpeedLimit",
        "slow_speed_unit": "slowSpeedUnit",
        "default_download_path": "defaultDownloadPath",
        "download_paths": "downloadPaths",
    }

    def to_dict(self) -> dict[str, Any]:
        return {
            self.JSON_KEYS[f.name]: (
                list(getattr(self, f.name)) if f.name == "download_paths" else getattr(self, f.name)
            )
            for f in fields(self)
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ConfigurationRecord":
        """
        Build a record from decoded JSON.

        Missing keys keep their defaults and unknown keys are ignored; a known
        key holding a value of the wrong type raises ConfigParseError.
        """
        if not isinstance(data, Mapping):
            raise ConfigParseError(
                f"configuration must be a JSON object, got {type(data).__name__}"
            )

        values: dict[str, Any] = {}
        for f in fields(cls):
            key = cls.JSON_KEYS[f.name]
            raw = data.get(key)
            if raw is None:
                continue
            values[f.name] = _coerce(f.name, key, raw)
        return cls(**values)

    def replace_with(self, other: "ConfigurationRecord") -> None:
        """Overwrite every field in place with the values of `other`."""
        for f in fields(self):
            value = getattr(other, f.name)
            setattr(self, f.name, list(value) if f.name == "download_paths" else value)


def _coerce(name: str, key: str, raw: Any) -> Any:
    if name == "port" or name == "slow_speed_limit":
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ConfigParseError(f"field {key!r} must be an integer, got {raw!r}")
        if isinstance(raw, float) and not raw.is_integer():
            raise ConfigParseError(f"field {key!r} must be an integer, got {raw!r}")
        return int(raw)
    if name == "max_upload_ratio":
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ConfigParseError(f"field {key!r} must be a number, got {raw!r}")
        return float(raw)
    if name == "download_paths":
        if not isinstance(raw, list) or not all(isinstance(p, str) for p in raw):
            raise ConfigParseError(f"field {key!r} must be a list of strings")
        return list(raw)
    if not isinstance(raw, str):
        raise ConfigParseError(f"field {key!r} must be a string, got {type(raw).__name__}")
    return raw


@dataclass(frozen=True)
class EncryptedConfig:
    """The current on-disk wrapper: a single field holding the encrypted blob."""

    encrypted_data: str = ""

    def to_dict(self) -> dict[str, str]:
        return {ENCRYPTED_DATA_KEY: self.encrypted_data}

    @classmethod
    def from_dict(cls, data: Any) -> "EncryptedConfig":
        if not isinstance(data, Mapping):
            raise ConfigParseError("configuration wrapper must be a JSON object")
        value = data.get(ENCRYPTED_DATA_KEY)
        if value is None:
            return cls()
        if not isinstance(value, str):
            raise ConfigParseError(f"field {ENCRYPTED_DATA_KEY!r} must be a string")
        return cls(encrypted_data=value)
