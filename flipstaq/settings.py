"""Centralized settings for the FlipStaq realtime client.

Uses pydantic-settings to load from environment variables (prefixed FLIPSTAQ_)
with defaults matching the local development stack.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """FlipStaq client settings loaded from environment variables."""

    # --- Endpoints ---
    ws_url: str = "ws://localhost:8001/ws"
    api_url: str = "http://localhost:3100"

    # --- Auth ---
    token_file: str = "~/.flipstaq/auth.json"
    auth_token: str = ""  # Explicit token, takes precedence over token_file

    # --- Realtime channel ---
    heartbeat_interval: float = 30.0
    reconnect_base_delay: float = 1.0
    reconnect_max_attempts: int = 5
    send_timeout: float = 10.0
    typing_ttl: float = 10.0

    # --- REST ---
    request_timeout: float = 30.0

    # --- Logging ---
    log_level: str = "INFO"
    log_format: str = "console"

    model_config = {
        "env_prefix": "FLIPSTAQ_",
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
