from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .env import Environment

APP_NAME = "transmission-client"
ENV_VAR = "TRCONF_ENV"
ROOT_VAR = "TRCONF_DIR"


@dataclass(frozen=True)
class RuntimeContext:
    app_name: str = APP_NAME
    env: Environment = Environment.PRODUCTION

    # Optional: hard override the platformdirs roots (useful for tests and portable installs)
    root_override: Optional[Path] = None

    # Env var names read by get_runtime_context
    env_var: str = ENV_VAR
    root_var: str = ROOT_VAR


def get_runtime_context(
    *,
    app_name: str = APP_NAME,
    env: Environment | str | None = None,
    root_override: Path | None = None,
    env_var: str = ENV_VAR,
    root_var: str = ROOT_VAR,
) -> RuntimeContext:
    resolved_env = env if isinstance(env, Environment) else Environment.parse(env)  # type: ignore[arg-type]
    if resolved_env is None:
        resolved_env = Environment.parse(os.getenv(env_var)) or Environment.PRODUCTION

    resolved_root = root_override
    if resolved_root is None:
        root_str = (os.getenv(root_var) or "").strip()
        resolved_root = Path(root_str).expanduser() if root_str else None

    return RuntimeContext(
        app_name=app_name,
        env=resolved_env,
        root_override=resolved_root,
        env_var=env_var,
        root_var=root_var,
    )
