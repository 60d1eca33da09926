"""Tests for the application-root realtime context."""

import pytest

from conftest import drain
from flipstaq.auth import MemoryTokenStore
from flipstaq.realtime import ClientEvent, RealtimeChannelClient, RealtimeContext
from flipstaq.settings import Settings


@pytest.fixture
def rt(client):
    return RealtimeContext(client)


class TestRealtimeContext:
    """Lifecycle, derived state and subscriptions."""

    def test_from_settings_wires_config(self, transport, backoff_sleep):
        settings = Settings(
            ws_url="ws://relay.test/custom",
            auth_token="tok",
            heartbeat_interval=15.0,
            reconnect_max_attempts=3,
            typing_ttl=4.0,
        )
        rt = RealtimeContext.from_settings(
            settings, transport=transport, backoff_sleep=backoff_sleep
        )
        assert isinstance(rt.client, RealtimeChannelClient)
        assert rt.client.config.url == "ws://relay.test/custom"
        assert rt.client.config.heartbeat_interval == 15.0
        assert rt.client.config.reconnect_max_attempts == 3
        assert rt.typing.ttl == 4.0
        assert rt.connection_state == "disconnected"

    @pytest.mark.asyncio
    async def test_async_context_manager(self, transport, backoff_sleep):
        settings = Settings(ws_url="ws://relay.test/ws")
        rt = RealtimeContext.from_settings(
            settings,
            token_store=MemoryTokenStore("tok"),
            transport=transport,
            backoff_sleep=backoff_sleep,
        )
        async with rt:
            assert rt.is_connected
            assert rt.connection_state == "connected"
        assert not rt.is_connected
        assert transport.last.closed_with == (1000, "Manual disconnect")
        assert rt.client.handler_count(ClientEvent.USER_ONLINE) == 0
        assert rt.client.handler_count(ClientEvent.USER_TYPING) == 0

    @pytest.mark.asyncio
    async def test_presence_and_typing_queries(self, rt, transport):
        await rt.start()
        conn = transport.last
        conn.push({"event": "userOnline", "data": {"userId": "u7"}})
        conn.push({
            "event": "userTyping",
            "data": {"userId": "u7", "conversationId": "c1", "isTyping": True},
        })
        await drain()
        assert rt.is_user_online("u7")
        assert [e.user_id for e in rt.typing_in("c1")] == ["u7"]
        await rt.close()

    @pytest.mark.asyncio
    async def test_subscriptions_return_unsubscribe(self, rt, transport):
        messages, statuses, reads, typing = [], [], [], []
        unsubscribers = [
            rt.on_new_message(messages.append),
            rt.on_user_status_changed(statuses.append),
            rt.on_message_read_status_changed(reads.append),
            rt.on_typing(typing.append),
        ]
        await rt.start()
        conn = transport.last
        conn.push({"event": "newMessage", "data": {"id": "m1"}})
        conn.push({"event": "userOnline", "data": {"userId": "u1"}})
        conn.push({"event": "userOffline", "data": {"userId": "u1"}})
        conn.push({"event": "messageReadStatusChanged", "data": {"messageId": "m1"}})
        conn.push({
            "event": "userTyping",
            "data": {"userId": "u1", "conversationId": "c1", "isTyping": False},
        })
        await drain()
        assert [m.id for m in messages] == ["m1"]
        assert [s.is_online for s in statuses] == [True, False]
        assert [r.message_id for r in reads] == ["m1"]
        assert [t.is_typing for t in typing] == [False]

        for unsubscribe in unsubscribers:
            unsubscribe()
        conn.push({"event": "newMessage", "data": {"id": "m2"}})
        conn.push({"event": "userOnline", "data": {"userId": "u2"}})
        await drain()
        assert len(messages) == 1
        assert len(statuses) == 2
        # presence map keeps its own subscription
        assert rt.is_user_online("u2")
        await rt.close()


class TestRefresh:
    """Reconnect after the stored token changes."""

    @pytest.mark.asyncio
    async def test_connects_when_token_present(self, rt, transport):
        assert await rt.refresh() is True
        assert rt.is_connected
        assert len(transport.uris) == 1
        await rt.close()

    @pytest.mark.asyncio
    async def test_no_token_does_nothing(self, channel_config, transport, backoff_sleep):
        client = RealtimeChannelClient(
            MemoryTokenStore(None),
            config=channel_config,
            transport=transport,
            backoff_sleep=backoff_sleep,
        )
        rt = RealtimeContext(client)
        assert await rt.refresh() is False
        assert transport.uris == []
        assert rt.connection_state == "disconnected"

    @pytest.mark.asyncio
    async def test_already_connected_is_noop(self, rt, transport):
        await rt.start()
        assert await rt.refresh() is False
        assert len(transport.uris) == 1
        await rt.close()

    @pytest.mark.asyncio
    async def test_login_after_start_connects(self, channel_config, transport, backoff_sleep):
        store = MemoryTokenStore(None)
        client = RealtimeChannelClient(
            store,
            config=channel_config,
            transport=transport,
            backoff_sleep=backoff_sleep,
        )
        rt = RealtimeContext(client)
        await rt.start()
        assert transport.uris == []

        store.set_token("fresh-token")
        assert await rt.refresh() is True
        assert rt.is_connected
        assert "fresh-token" in transport.uris[0]
        await rt.close()
