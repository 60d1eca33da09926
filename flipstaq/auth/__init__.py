"""Bearer token stores."""

from flipstaq.auth.token_store import (
    TOKEN_KEY,
    FileTokenStore,
    MemoryTokenStore,
    TokenStore,
    token_store_from_settings,
)

__all__ = [
    "TOKEN_KEY",
    "FileTokenStore",
    "MemoryTokenStore",
    "TokenStore",
    "token_store_from_settings",
]
