import logging
from pathlib import Path

import pytest

from trconf.credentials.errors import PathResolutionError
from trconf.credentials.paths import get_config_path
from trconf.logging import get_logger, setup_logging
from trconf.runtime.context import RuntimeContext, get_runtime_context
from trconf.runtime.env import Environment
from trconf.runtime.paths import resolve_app_paths


@pytest.mark.parametrize(
    "value, expected",
    [
        ("dev", Environment.DEVELOPMENT),
        (" Production ", Environment.PRODUCTION),
        ("testing", Environment.TEST),
        ("staging", None),
        (None, None),
    ],
)
def test_environment_parse(value, expected):
    assert Environment.parse(value) is expected


def test_context_reads_environment_variables(tmp_path, monkeypatch):
    monkeypatch.setenv("TRCONF_DIR", str(tmp_path))
    monkeypatch.setenv("TRCONF_ENV", "dev")

    ctx = get_runtime_context()

    assert ctx.env is Environment.DEVELOPMENT
    assert ctx.root_override == tmp_path


def test_context_arguments_win_over_environment(tmp_path, monkeypatch):
    monkeypatch.delenv("TRCONF_DIR")
    monkeypatch.setenv("TRCONF_ENV", "dev")

    ctx = get_runtime_context(env="production")

    assert ctx.env is Environment.PRODUCTION
    assert ctx.root_override is None


def test_paths_under_root_override(tmp_path):
    paths = resolve_app_paths(RuntimeContext(root_override=tmp_path))

    assert get_config_path(paths) == tmp_path / "transmission-client" / "config.json"
    assert paths.log_file == tmp_path / "transmission-client" / "logs" / "trconf.log"


def test_paths_from_platformdirs(monkeypatch):
    monkeypatch.setattr(
        "trconf.runtime.paths.platformdirs.user_config_dir",
        lambda app, appauthor=None: f"/home/u/.config/{app}",
    )
    monkeypatch.setattr(
        "trconf.runtime.paths.platformdirs.user_log_dir",
        lambda app, appauthor=None: f"/home/u/.local/state/{app}/log",
    )

    paths = resolve_app_paths(RuntimeContext(env=Environment.DEVELOPMENT))

    assert get_config_path(paths) == Path("/home/u/.config/transmission-client-development/config.json")


def test_unexpanded_home_is_resolution_error(monkeypatch):
    monkeypatch.setattr(
        "trconf.runtime.paths.platformdirs.user_config_dir",
        lambda app, appauthor=None: f"~/.config/{app}",
    )

    with pytest.raises(PathResolutionError):
        resolve_app_paths(RuntimeContext())


@pytest.fixture()
def clean_logger():
    logger = logging.getLogger("trconf")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def test_setup_logging_writes_file_once(tmp_path, clean_logger):
    log_file = tmp_path / "logs" / "trconf.log"

    first = setup_logging(log_file, level=logging.DEBUG, console=False)
    second = setup_logging(log_file, console=True)
    get_logger("trconf.credentials.store").info("saved")

    assert first is second is clean_logger
    assert len(clean_logger.handlers) == 1
    for handler in clean_logger.handlers:
        handler.flush()
    content = log_file.read_text(encoding="utf-8")
    assert "Logging initialized" in content
    assert "trconf.credentials.store | saved" in content


def test_get_logger_names():
    assert get_logger().name == "trconf"
    assert get_logger("trconf.history").name == "trconf.history"
    assert get_logger("plugin").name == "trconf.plugin"


def test_log_dir_is_resolved_on_demand(monkeypatch):
    monkeypatch.setattr(
        "trconf.runtime.paths.platformdirs.user_config_dir",
        lambda app, appauthor=None: f"/home/u/.config/{app}",
    )

    def no_log_dir(*args, **kwargs):
        raise RuntimeError("no state dir")

    monkeypatch.setattr("trconf.runtime.paths.platformdirs.user_log_dir", no_log_dir)

    paths = resolve_app_paths(RuntimeContext())

    assert paths.config_dir == Path("/home/u/.config/transmission-client")
    with pytest.raises(PathResolutionError):
        paths.log_dir
