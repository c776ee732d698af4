from __future__ import annotations


class ConfigError(Exception):
    """Base class for failures of the encrypted configuration subsystem."""


class PathResolutionError(ConfigError):
    """The platform could not supply a per-user configuration directory."""


class ConfigIOError(ConfigError):
    """Reading, writing or creating the configuration file failed."""


class ConfigParseError(ConfigError):
    """The configuration file or decrypted payload is not valid JSON of the expected shape."""


class DecryptionError(ConfigError):
    """The encrypted blob is truncated, tampered with, or sealed under another key."""


class EncryptionError(ConfigError):
    """Serializing or sealing the configuration record failed."""
