"""
Configuration document for the Theia client.

The document is a JSON object whose settings use the nested shape
``{"<Key>": {"value": ...}}``. It is read once and cached; ``reload()``
re-reads the file and swaps the cached mapping in a single step, so a
caller never sees a partially updated document.
"""

import json
import threading
from pathlib import Path
from typing import Any, Optional

from theia_client.constants import REQUIRED_CONFIG_KEYS


class ConfigError(Exception):
    """The configuration file is missing, malformed or incomplete."""


class Settings:
    """Load-once configuration with an explicit, atomic reload."""

    def __init__(self, path):
        self.path = Path(path)
        self._data: Optional[dict] = None
        self._lock = threading.Lock()

    def load(self) -> dict:
        """Return the cached document, reading it on first use."""
        data = self._data
        if data is not None:
            return data
        with self._lock:
            if self._data is None:
                self._data = self._read()
            return self._data

    def reload(self) -> dict:
        """Re-read the file. On failure the previous document stays in place."""
        data = self._read()
        with self._lock:
            self._data = data
        return data

    def _read(self) -> dict:
        if not self.path.exists():
            raise ConfigError(f"Configuration file not found: {self.path}")

        try:
            with open(self.path, encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Configuration in {self.path} must be a JSON object")

        for key in REQUIRED_CONFIG_KEYS:
            if key not in data:
                raise ConfigError(f"Missing required configuration key: {key}")
        return data

    def value(self, key: str, default: Any = None) -> Any:
        """Return ``document[key]["value"]`` or `default` when absent."""
        entry = self.load().get(key)
        if isinstance(entry, dict) and 'value' in entry:
            return entry['value']
        return default

    @property
    def websocket_url(self) -> str:
        return self.value('WebSocket', '')

    @property
    def post_url(self) -> str:
        return self.value('PostRequest', '')

    @property
    def credentials(self) -> tuple:
        """(username, password), either of which may be None."""
        auth = self.value('Auth') or {}
        if not isinstance(auth, dict):
            return None, None
        return auth.get('username'), auth.get('password')
