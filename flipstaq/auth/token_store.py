"""Bearer token storage.

The realtime channel and the REST client both read the access token
from here. The file store mirrors the browser's persisted ``authToken``
entry: a small JSON document on local disk.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Protocol, Union

from flipstaq.settings import Settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "authToken"


class TokenStore(Protocol):
    """Anything that can hand out the current bearer token."""

    def get_token(self) -> Optional[str]:
        ...


class MemoryTokenStore:
    """Token held in process memory."""

    def __init__(self, token: Optional[str] = None):
        self._token = token or None

    def get_token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token or None

    def clear(self) -> None:
        self._token = None


class FileTokenStore:
    """Token persisted as ``{"authToken": "..."}`` in a JSON file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def get_token(self) -> Optional[str]:
        """Return the stored token, or None when absent or unreadable."""
        if not self.path.exists():
            logger.debug("Token file %s does not exist", self.path)
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read token file %s: %s", self.path, e)
            return None
        if not isinstance(data, dict):
            return None
        token = data.get(TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    def set_token(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({TOKEN_KEY: token}), encoding="utf-8")

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


def token_store_from_settings(settings: Settings) -> TokenStore:
    """An explicit ``auth_token`` setting wins over the token file."""
    if settings.auth_token:
        return MemoryTokenStore(settings.auth_token)
    return FileTokenStore(settings.token_file)
