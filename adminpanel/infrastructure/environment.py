"""Environment variable store backed by a local ``.env`` file (python-dotenv).

Writes go to the file and to the running process, and reset the cached
settings so the next ``get_settings()`` call sees them.
"""

import os
from pathlib import Path
from typing import Dict, Optional

import structlog
from dotenv import dotenv_values, set_key, unset_key

from adminpanel.config import get_settings

logger = structlog.get_logger(__name__)


class DotEnvStore:
    """Read and edit KEY=value pairs in a .env file."""

    def __init__(self, path: str):
        self.path = Path(path)

    def _ensure_file(self) -> None:
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.touch()

    def list(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        return {key: value or "" for key, value in dotenv_values(self.path).items()}

    def get(self, key: str) -> Optional[str]:
        return self.list().get(key)

    def set_many(self, variables: Dict[str, str]) -> None:
        if not variables:
            return
        self._ensure_file()
        for key, value in variables.items():
            set_key(str(self.path), key, value, quote_mode="auto")
            os.environ[key] = value
        get_settings.cache_clear()
        logger.info("Environment variables updated", keys=sorted(variables))

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def delete(self, key: str) -> bool:
        """Remove a key; returns False when it was not present."""
        os.environ.pop(key, None)
        get_settings.cache_clear()
        if key not in self.list():
            return False
        unset_key(str(self.path), key)
        logger.info("Environment variable removed", key=key)
        return True

    def update(self, variables: Dict[str, Optional[str]], remove_empty: bool = True) -> None:
        """Bulk update: None (or "" when ``remove_empty``) deletes the key."""
        to_set = {}
        for key, value in variables.items():
            if value is None or (remove_empty and value == ""):
                self.delete(key)
            else:
                to_set[key] = value
        self.set_many(to_set)

    def provider_info(self) -> Dict[str, object]:
        return {"type": "local", "supports_secrets": False, "is_platform_environment": False}


def get_env_store() -> DotEnvStore:
    return DotEnvStore(get_settings().ENV_FILE)
