"""
Tests para el sink de notificaciones
"""

import asyncio
import json
from decimal import Decimal
from uuid import uuid4

import pytest
import redis
from fastapi import WebSocketDisconnect

from app.main import app
from app.modules.notifications.notifier import ORDER_CREATED, NullNotifier, RedisNotifier
from app.modules.notifications.router import get_async_redis


class PublishingClient:
    def __init__(self):
        self.messages = []

    def publish(self, channel, message):
        self.messages.append((channel, message))
        return 1


class BrokenClient:
    def publish(self, channel, message):
        raise redis.ConnectionError("sin conexión")


class TestRedisNotifier:

    def test_publishes_json_envelope(self):
        client = PublishingClient()
        order_id = uuid4()
        RedisNotifier(client, channel="comanda:test").publish(
            ORDER_CREATED, {"id": order_id, "total": Decimal("30.00")}
        )

        channel, raw = client.messages[0]
        message = json.loads(raw)
        assert channel == "comanda:test"
        assert message["event"] == ORDER_CREATED
        assert message["data"] == {"id": str(order_id), "total": "30.00"}
        assert "published_at" in message

    def test_publish_failure_is_swallowed(self, caplog):
        RedisNotifier(BrokenClient()).publish(ORDER_CREATED, {"id": "x"})
        assert "Could not publish" in caplog.text

    def test_null_notifier(self):
        NullNotifier().publish(ORDER_CREATED, {"id": "x"})

    def test_decimals_in_lists_stay_exact(self):
        client = PublishingClient()
        RedisNotifier(client).publish(ORDER_CREATED, [{"subtotal": Decimal("12.50")}, {"subtotal": Decimal("0.10")}])
        data = json.loads(client.messages[0][1])["data"]
        assert [row["subtotal"] for row in data] == ["12.50", "0.10"]


# ===== TESTS DEL WEBSOCKET =====

class FakePubSub:
    """Pub/sub asíncrono que entrega mensajes fijos y luego falla o espera."""

    def __init__(self, messages, error=None):
        self.messages = messages
        self.error = error
        self.subscribed = []
        self.closed = False

    async def subscribe(self, channel):
        self.subscribed.append(channel)

    async def unsubscribe(self, channel):
        self.subscribed.remove(channel)

    async def listen(self):
        for message in self.messages:
            yield message
        if self.error is not None:
            raise self.error
        await asyncio.Event().wait()

    async def aclose(self):
        self.closed = True


class FakeAsyncRedis:
    def __init__(self, pubsub):
        self._pubsub = pubsub
        self.closed = False

    def pubsub(self):
        return self._pubsub

    async def aclose(self):
        self.closed = True


class TestNotificationsSocket:

    @pytest.fixture
    def envelope(self):
        return RedisNotifier.encode(ORDER_CREATED, {"id": "abc"})

    def _override(self, fake):
        app.dependency_overrides[get_async_redis] = lambda: fake

    def test_relays_channel_messages(self, client, envelope):
        pubsub = FakePubSub([
            {"type": "subscribe", "data": 1},
            {"type": "message", "data": envelope},
        ])
        fake = FakeAsyncRedis(pubsub)
        self._override(fake)

        with client.websocket_connect("/ws/notifications") as ws:
            assert json.loads(ws.receive_text())["event"] == ORDER_CREATED

        assert pubsub.closed
        assert pubsub.subscribed == []
        assert fake.closed

    def test_redis_failure_closes_socket(self, client, envelope, caplog):
        pubsub = FakePubSub([{"type": "message", "data": envelope}], error=redis.ConnectionError("conexión perdida"))
        fake = FakeAsyncRedis(pubsub)
        self._override(fake)

        with client.websocket_connect("/ws/notifications") as ws:
            assert json.loads(ws.receive_text())["data"] == {"id": "abc"}
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_text()

        assert exc_info.value.code == 1011
        assert "Notification relay stopped" in caplog.text
        assert fake.closed
