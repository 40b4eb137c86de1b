"""Small HTTP client for the loopback-only local API."""

from typing import Any, Optional

import requests


class LocalApiClient:
    """Thin wrapper around `requests` with stable local API endpoints."""

    def __init__(self, base_url: str) -> None:
        self.base_url = str(base_url or "").rstrip("/")

    @classmethod
    def for_port(cls, port: int) -> "LocalApiClient":
        return cls(f"http://127.0.0.1:{int(port)}/api/local")

    def _get(self, path: str, timeout: float):
        return requests.get(f"{self.base_url}/{path.lstrip('/')}", timeout=timeout)

    def _post(self, path: str, payload: Optional[dict[str, Any]] = None, timeout: float = 2.0):
        return requests.post(f"{self.base_url}/{path.lstrip('/')}", json=payload, timeout=timeout)

    def get_info(self, timeout: float = 1.0):
        return self._get("info", timeout=timeout)

    def get_inbox(self, timeout: float = 1.0):
        """Retrieve the inbox status line and file list."""
        return self._get("inbox", timeout=timeout)

    def stage(self, file_path: str, timeout: float = 5.0):
        """Ask the running server to stage a host file for the peer."""
        return self._post("stage", {"file_path": str(file_path or "")}, timeout=timeout)
