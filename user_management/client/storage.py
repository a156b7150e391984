"""
Token storage for the API client.

Holds the bearer token and the last known user between calls. The file
variant persists both as JSON so a CLI session survives restarts.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..logging_config import get_logger

logger = get_logger(__name__)


class TokenStore:
    """In-memory token and user storage."""

    def __init__(self) -> None:
        self._token: Optional[str] = None
        self._user: Optional[Dict[str, Any]] = None

    def get_token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        self._token = token
        self._persist()

    def get_user(self) -> Optional[Dict[str, Any]]:
        return self._user

    def set_user(self, user: Optional[Dict[str, Any]]) -> None:
        self._user = dict(user) if user is not None else None
        self._persist()

    def save(self, token: str, user: Dict[str, Any]) -> None:
        self._token = token
        self._user = dict(user)
        self._persist()

    def clear(self) -> None:
        self._token = None
        self._user = None
        self._persist()

    @property
    def has_token(self) -> bool:
        return bool(self._token)

    def _persist(self) -> None:
        """Hook for subclasses that keep state outside the process."""


class FileTokenStore(TokenStore):
    """
    Token store backed by a JSON file.

    The file holds ``{"token": ..., "user": ...}`` and is removed on clear.
    Unreadable files are treated as empty.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__()
        self.path = Path(path).expanduser()
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable token file", path=str(self.path), error=str(e))
            return

        if isinstance(data, dict):
            self._token = data.get("token")
            self._user = data.get("user")

    def _persist(self) -> None:
        if self._token is None and self._user is None:
            if self.path.exists():
                self.path.unlink()
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"token": self._token, "user": self._user}),
            encoding="utf-8",
        )
