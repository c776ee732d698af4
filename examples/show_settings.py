from __future__ import annotations

import os

from trconf.client import Settings
from trconf.logging import setup_logging
from trconf.runtime.paths import resolve_app_paths

# Optional environment variables:
#   TRCONF_DIR   keep everything under this directory instead of the user config dir
#   TRCONF_ENV   production (default) | development | test
#   TRCONF_HOST  daemon host to store on first run


def main() -> int:
    setup_logging(resolve_app_paths().log_file)

    settings = Settings()
    record = settings.load(migrate=True)

    if not record.host and os.getenv("TRCONF_HOST"):
        settings.update_connection(host=os.environ["TRCONF_HOST"], port=record.port)
        settings.save()

    print(f"config file: {settings.store.resolve_path()}")
    print(f"daemon: {record.host or '<not set>'}:{record.port}")
    print(f"theme: {record.theme}  language: {record.language or '<system>'}")
    for path in settings.download_paths():
        print(f"download path: {path}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
