from __future__ import annotations

from pathlib import Path

from trconf.runtime.paths import AppPaths

CONFIG_FILENAME = "config.json"


def get_config_path(paths: AppPaths) -> Path:
    # the one configuration record per installation
    return paths.config_dir / CONFIG_FILENAME
