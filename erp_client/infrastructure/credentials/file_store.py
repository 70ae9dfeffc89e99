"""
Durable credential store backed by a JSON file.

The file is written with owner-only permissions and replaced atomically,
so a crash mid-write never leaves a truncated token behind.
"""

import json
import logging
import os
from pathlib import Path

from erp_client.domain.ports import CredentialStorePort

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"


class FileCredentialStore(CredentialStorePort):
    """Persists a token across processes in a small JSON document."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> str | None:
        """Read the stored token; unreadable files are treated as empty."""
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"[FileCredentialStore] Ignoring unreadable credentials file: {e}")
            return None

        token = data.get(TOKEN_KEY) if isinstance(data, dict) else None
        return token if isinstance(token, str) else None

    def set(self, token: str, durable: bool = True) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")

        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump({TOKEN_KEY: token}, f)
        os.replace(tmp_path, self._path)
        logger.debug(f"[FileCredentialStore] Stored token in {self._path}")

    def clear(self) -> None:
        try:
            self._path.unlink()
            logger.debug(f"[FileCredentialStore] Removed {self._path}")
        except FileNotFoundError:
            pass
