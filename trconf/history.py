from __future__ import annotations

from typing import Callable, Sequence

from trconf.logging import get_logger

logger = get_logger(__name__)

MAX_HISTORY = 10


def record_path(paths: Sequence[str], path: str) -> list[str]:
    """
    Put `path` at the front of the history.

    Empty paths and paths already present leave the history unchanged, so a
    known path keeps its position. The result holds at most MAX_HISTORY
    entries; the oldest fall off the end.
    """
    if not path or path in paths:
        return list(paths)
    return [path, *paths][:MAX_HISTORY]


def remove_path(paths: Sequence[str], path: str) -> list[str]:
    """Drop the first exact match of `path`, keeping the order of the rest."""
    result = list(paths)
    if path in result:
        result.remove(path)
    return result


def effective_paths(
    history: Sequence[str],
    cached_default: str,
    live_lookup: Callable[[], str] | None = None,
) -> list[str]:
    """
    Suggestions for a download location, best first.

    The cached default directory comes first, then the history without
    repeats. Only when both are empty is `live_lookup` asked for the remote
    default; if it fails or returns nothing the list stays empty.
    """
    result: list[str] = []
    if cached_default:
        result.append(cached_default)
    for path in history:
        if path not in result:
            result.append(path)

    if not result and live_lookup is not None:
        try:
            path = live_lookup()
        except Exception as exc:
            logger.debug("Live lookup of default download directory failed: %s", exc)
            path = ""
        if path:
            result.append(path)
    return result
