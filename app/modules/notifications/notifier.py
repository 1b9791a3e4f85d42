"""
Notification Sink: publicación de eventos de ciclo de vida para clientes en tiempo real.

Los servicios reciben un ``Notifier`` por constructor y publican después de
confirmar la transacción. Publicar nunca bloquea ni falla la operación.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

import redis
from pydantic_core import to_jsonable_python

from app.core.config import settings
from app.core.redis import redis_client

logger = logging.getLogger(__name__)

ORDER_CREATED = "order.created"
ORDER_UPDATED = "order.updated"
CASH_SESSION_OPENED = "cash_session.opened"
CASH_SESSION_CLOSED = "cash_session.closed"
INVOICE_ISSUED = "invoice.issued"
EVENT_CREATED = "event.created"
EVENT_DELETED = "event.deleted"


class Notifier:
    """Interfaz del sink de notificaciones."""

    def publish(self, event_name: str, payload: Any) -> None:
        raise NotImplementedError


class NullNotifier(Notifier):
    def publish(self, event_name: str, payload: Any) -> None:
        logger.debug(f"Notification dropped (no sink): {event_name}")


class RedisNotifier(Notifier):
    """Publica ``{"event", "data", "published_at"}`` como JSON en un canal de Redis."""

    def __init__(self, client: redis.Redis, channel: str = settings.NOTIFICATIONS_CHANNEL):
        self.client = client
        self.channel = channel

    @staticmethod
    def encode(event_name: str, payload: Any) -> str:
        message: Dict[str, Any] = {
            "event": event_name,
            "data": to_jsonable_python(payload),
            "published_at": datetime.now(timezone.utc).isoformat(),
        }
        return json.dumps(message)

    def publish(self, event_name: str, payload: Any) -> None:
        try:
            receivers = self.client.publish(self.channel, self.encode(event_name, payload))
            logger.debug(f"Published {event_name} to {self.channel} ({receivers} receivers)")
        except redis.RedisError as e:
            logger.warning(f"Could not publish {event_name}: {e}")


notifier = RedisNotifier(redis_client)


def get_notifier() -> Notifier:
    """Dependency returning the process-wide notifier."""
    return notifier
