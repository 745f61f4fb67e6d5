"""
Durable key-value storage for the session.

The session manager is the only writer. Two implementations are provided:
- MemoryStorage: process-local, used by tests and throwaway sessions
- JsonFileStorage: a JSON object on disk that survives restarts
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from .exceptions import SessionStorageError

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"
# Written by older clients, only ever removed now
LEGACY_USER_ID_KEY = "userId"

SESSION_KEYS = (TOKEN_KEY, USER_KEY, LEGACY_USER_ID_KEY)


class MemoryStorage:
    """Storage backed by a plain dict."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStorage:
    """
    Storage persisted as a single JSON object.

    Every write rewrites the file through a temp file and ``os.replace`` so a
    crash never leaves half a document behind. An unreadable file is treated
    as empty.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable session file {self._path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring session file {self._path}: not a JSON object")
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _save(self, data: dict[str, str], key: str) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._path.parent, prefix=".session-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self._path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise SessionStorageError(key, str(e)) from e

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data, key)

    def remove(self, key: str) -> None:
        data = self._load()
        if key not in data:
            return
        del data[key]
        self._save(data, key)

    def keys(self) -> list[str]:
        return list(self._load())
