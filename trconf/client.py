from __future__ import annotations

from typing import Any, Mapping, Protocol

from trconf.credentials.models import SPEED_UNITS, THEMES, ConfigurationRecord
from trconf.credentials.store import ConfigStore
from trconf.history import effective_paths, record_path, remove_path
from trconf.logging import get_logger
from trconf.remote import TransmissionSession

logger = get_logger(__name__)


class DefaultDirectorySource(Protocol):
    def query_default_download_directory(self) -> str: ...


class Settings:
    """
    Application-side owner of the configuration record.

    Holds one record in memory, edits it, and writes it through a
    ConfigStore. Not thread-safe: callers serialize load/modify/save.
    """

    def __init__(
        self,
        store: ConfigStore | None = None,
        *,
        remote: DefaultDirectorySource | None = None,
    ) -> None:
        self.store = store or ConfigStore()
        self.remote = remote
        self.record = ConfigurationRecord()

    def load(self, *, migrate: bool = False) -> ConfigurationRecord:
        """
        Replace the in-memory record with what is on disk.

        With `migrate=True` a legacy plaintext file is rewritten in the
        encrypted layout straight away instead of on the next save.
        """
        self.record = self.store.load() or ConfigurationRecord()
        if migrate and self.store.needs_migration():
            logger.info("Migrating legacy plaintext config to encrypted format.")
            self.save()
        return self.record

    def save(self) -> None:
        self.store.save(self.record)

    def update_connection(
        self, config: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> ConfigurationRecord:
        data: dict[str, Any] = {}
        if config:
            data.update(config)
        data.update(kwargs)

        required = ("host", "port")
        missing = [field for field in required if not data.get(field)]
        if missing:
            raise ValueError(
                f"Missing required connection fields: {', '.join(missing)}"
            )

        port = int(data["port"])
        if not 1 <= port <= 65535:
            raise ValueError(f"Port out of range: {port}")

        self.record.host = str(data["host"]).strip()
        self.record.port = port
        self.record.username = str(data.get("username") or "")
        self.record.password = str(data.get("password") or "")
        return self.record

    def update_preferences(
        self, config: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> ConfigurationRecord:
        data: dict[str, Any] = {}
        if config:
            data.update(config)
        data.update(kwargs)

        if "theme" in data:
            theme = str(data["theme"])
            if theme not in THEMES:
                raise ValueError(f"Unknown theme: {theme!r}")
            self.record.theme = theme
        if "language" in data:
            self.record.language = str(data["language"] or "")
        return self.record

    def update_limits(
        self, config: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> ConfigurationRecord:
        data: dict[str, Any] = {}
        if config:
            data.update(config)
        data.update(kwargs)

        if "max_upload_ratio" in data:
            ratio = float(data["max_upload_ratio"])
            if ratio < 0:
                raise ValueError("max_upload_ratio must be >= 0 (0 means unlimited)")
            self.record.max_upload_ratio = ratio
        if "slow_speed_limit" in data:
            limit = int(data["slow_speed_limit"])
            if limit < 1:
                raise ValueError("slow_speed_limit must be >= 1")
            self.record.slow_speed_limit = limit
        if "slow_speed_unit" in data:
            unit = str(data["slow_speed_unit"])
            if unit not in SPEED_UNITS:
                raise ValueError(f"Unknown speed unit: {unit!r}")
            self.record.slow_speed_unit = unit
        return self.record

    def save_download_path(self, path: str) -> None:
        updated = record_path(self.record.download_paths, path)
        if updated == self.record.download_paths:
            return
        self.record.download_paths = updated
        self.save()

    def remove_download_path(self, path: str) -> None:
        updated = remove_path(self.record.download_paths, path)
        if updated == self.record.download_paths:
            return
        self.record.download_paths = updated
        self.save()

    def download_paths(self) -> list[str]:
        """
        Download locations to offer, best first.

        When neither a cached default nor any history exists the remote
        daemon is asked; its answer is cached as the default and saved.
        """
        paths = effective_paths(
            self.record.download_paths,
            self.record.default_download_path,
            self._lookup_default_directory,
        )
        if paths and not self.record.default_download_path and not self.record.download_paths:
            self.record.default_download_path = paths[0]
            self.save()
        return paths

    def _lookup_default_directory(self) -> str:
        remote = self.remote
        if remote is None:
            if not self.record.host:
                return ""
            remote = TransmissionSession.from_record(self.record)
        return remote.query_default_download_directory()
