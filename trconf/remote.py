from __future__ import annotations

from typing import Any

import requests

from trconf.credentials.models import ConfigurationRecord
from trconf.logging import get_logger

logger = get_logger(__name__)

RPC_PATH = "/transmission/rpc"
SESSION_ID_HEADER = "X-Transmission-Session-Id"


class RemoteError(RuntimeError):
    """The remote daemon could not answer a query."""


class TransmissionSession:
    """
    Just enough of the Transmission RPC protocol to ask for the daemon's
    default download directory.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        *,
        timeout: float = 10,
    ) -> None:
        # IPv6 literals need brackets in a URL authority.
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        self.url = f"http://{host}:{port}{RPC_PATH}"
        self._auth = (username, password) if username else None
        self._timeout = timeout
        self._session_id: str | None = None

    @classmethod
    def from_record(cls, record: ConfigurationRecord, **kwargs: Any) -> "TransmissionSession":
        if not record.host:
            raise ValueError("host is required to reach the remote daemon.")
        return cls(record.host, record.port, record.username, record.password, **kwargs)

    def query_default_download_directory(self) -> str:
        data = self._call("session-get", {"fields": ["download-dir"]})
        arguments = data.get("arguments")
        if not isinstance(arguments, dict):
            raise RemoteError(f"session-get returned no arguments: {data!r}")
        return str(arguments.get("download-dir") or "")

    def _call(self, method: str, arguments: dict[str, Any]) -> dict[str, Any]:
        payload = {"method": method, "arguments": arguments}

        response = self._post(payload)
        if response.status_code == 409:
            # The daemon hands out its CSRF token on the first request.
            self._session_id = response.headers.get(SESSION_ID_HEADER)
            if not self._session_id:
                raise RemoteError("daemon answered 409 without a session id")
            response = self._post(payload)

        if response.status_code == 401:
            raise RemoteError("daemon rejected the credentials")
        if response.status_code != 200:
            raise RemoteError(f"{method} failed: {response.status_code} {response.text}")

        data = self._safe_json(response)
        if data.get("result") != "success":
            raise RemoteError(f"{method} failed: {data.get('result')!r}")
        return data

    def _post(self, payload: dict[str, Any]) -> requests.Response:
        headers = {SESSION_ID_HEADER: self._session_id} if self._session_id else {}
        try:
            return requests.post(
                self.url,
                json=payload,
                headers=headers,
                auth=self._auth,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.debug("RPC request to %s failed: %s", self.url, exc)
            raise RemoteError(f"cannot reach {self.url}: {exc}") from exc

    def _safe_json(self, response: requests.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            return {}
        return data
