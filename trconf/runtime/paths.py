from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import platformdirs

from trconf.credentials.errors import PathResolutionError

from .context import RuntimeContext, get_runtime_context


@dataclass(frozen=True)
class AppPaths:
    config_dir: Path
    app_name: str
    root_override: Path | None = None

    @property
    def log_dir(self) -> Path:
        # Resolved on demand; config paths never depend on it.
        if self.root_override is not None:
            return self.config_dir / "logs"
        return _platform_dir(platformdirs.user_log_dir, self.app_name, "log")

    @property
    def log_file(self) -> Path:
        return self.log_dir / "trconf.log"


def _platform_dir(lookup, app_name: str, kind: str) -> Path:
    try:
        value = lookup(app_name, appauthor=False)
    except Exception as exc:
        raise PathResolutionError(f"cannot determine user {kind} directory: {exc}") from exc
    # An unexpanded "~" means there is no home directory to anchor on.
    if not value or str(value).startswith("~"):
        raise PathResolutionError(f"platform did not supply a user {kind} directory")
    return Path(value)


def resolve_app_paths(ctx: RuntimeContext | None = None) -> AppPaths:
    """
    Work out where this installation keeps its files.

    With a root override everything lives under ``<root>/<app name>``;
    otherwise platformdirs picks the per-user locations. Non-production
    environments get their own suffixed app name so they never touch the
    real configuration.
    """
    ctx = ctx or get_runtime_context()
    app_name = f"{ctx.app_name}{ctx.env.suffix()}"

    if ctx.root_override is not None:
        return AppPaths(
            config_dir=Path(ctx.root_override) / app_name,
            app_name=app_name,
            root_override=Path(ctx.root_override),
        )

    return AppPaths(
        config_dir=_platform_dir(platformdirs.user_config_dir, app_name, "config"),
        app_name=app_name,
    )
