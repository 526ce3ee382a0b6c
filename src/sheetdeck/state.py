"""Durable key/value state (the locally known data version).

Values are stored per invoking OS user, so two users sharing a state file
each keep their own version.
"""

import getpass
import json
import logging
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


def current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "default"


class JsonStateStore:
    """Key/value state persisted to a JSON file.

    Layout on disk::

        {"<user>": {"<key>": "<value>", ...}, ...}

    Args:
        path: JSON file; created on first write.
        user: Namespace for this store's keys (defaults to the OS user).
    """

    def __init__(self, path: Union[str, Path], user: Optional[str] = None):
        self.path = Path(path)
        self.user = user or current_user()

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable state file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get a value for the current user with default.

        Args:
            key: State key
            default: Default value if key not found

        Returns:
            Stored value or default
        """
        value = self._read_all().get(self.user, {}).get(key)
        return default if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        """Set a value for the current user, creating the file if needed."""
        data = self._read_all()
        data.setdefault(self.user, {})[key] = str(value)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        logger.debug(f"Stored state {key}={value} for {self.user} in {self.path}")


class InMemoryStateStore:
    """Key/value state held in a dict (tests and dry runs)."""

    def __init__(self, initial: Optional[dict] = None):
        self.values = dict(initial or {})

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(key, default)

    def set(self, key: str, value: str) -> None:
        self.values[key] = str(value)
