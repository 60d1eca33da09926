"""Tests for settings and error configuration."""

import pytest

from flipstaq.errors import (
    ERROR_STATUS_MAP,
    ErrorCode,
    FlipStaqError,
    InvalidTransitionError,
    NotConnectedError,
    NotFoundError,
    SendTimeoutError,
    TransportClosed,
    TransportError,
    ValidationError,
)
from flipstaq.realtime import ChannelConfig
from flipstaq.settings import Settings, get_settings


class TestSettings:
    """pydantic-settings loading."""

    def test_defaults(self, monkeypatch):
        for name in ("WS_URL", "API_URL", "AUTH_TOKEN", "RECONNECT_MAX_ATTEMPTS"):
            monkeypatch.delenv(f"FLIPSTAQ_{name}", raising=False)
        settings = Settings(_env_file=None)
        assert settings.ws_url == "ws://localhost:8001/ws"
        assert settings.api_url == "http://localhost:3100"
        assert settings.heartbeat_interval == 30.0
        assert settings.reconnect_base_delay == 1.0
        assert settings.reconnect_max_attempts == 5
        assert settings.send_timeout == 10.0
        assert settings.typing_ttl == 10.0

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("FLIPSTAQ_WS_URL", "wss://chat.example.com/ws")
        monkeypatch.setenv("FLIPSTAQ_RECONNECT_MAX_ATTEMPTS", "8")
        settings = Settings(_env_file=None)
        assert settings.ws_url == "wss://chat.example.com/ws"
        assert settings.reconnect_max_attempts == 8

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_channel_config_from_settings(self):
        settings = Settings(
            _env_file=None,
            ws_url="ws://relay/ws",
            heartbeat_interval=5.0,
            reconnect_base_delay=0.5,
            reconnect_max_attempts=2,
            send_timeout=3.0,
            typing_ttl=7.0,
        )
        assert ChannelConfig.from_settings(settings) == ChannelConfig(
            url="ws://relay/ws",
            heartbeat_interval=5.0,
            reconnect_base_delay=0.5,
            reconnect_max_attempts=2,
            send_timeout=3.0,
            typing_ttl=7.0,
        )


class TestErrors:
    """Error hierarchy and status mapping."""

    def test_status_map_covers_all_codes(self):
        for code in ErrorCode:
            assert code in ERROR_STATUS_MAP

    def test_everything_is_a_flipstaq_error(self):
        for exc in (
            ValidationError(),
            NotFoundError(),
            NotConnectedError(),
            SendTimeoutError(timeout=1.0),
            TransportClosed(1006),
        ):
            assert isinstance(exc, FlipStaqError)

    def test_validation_error_details(self):
        exc = ValidationError("bad", field="file")
        assert exc.status_code == 400
        assert exc.details == [{"field": "file", "issue": "bad"}]

    def test_transport_closed_carries_code(self):
        exc = TransportClosed(1001, "going away")
        assert isinstance(exc, TransportError)
        assert exc.code == 1001
        assert "going away" in exc.message

    def test_invalid_transition_message(self):
        exc = InvalidTransitionError("open", "connect")
        assert exc.message == "Cannot connect while open"

    def test_not_connected_default(self):
        with pytest.raises(FlipStaqError, match="WebSocket not connected"):
            raise NotConnectedError()
