"""
WebSocket que retransmite el canal de notificaciones a los clientes conectados.

Si Redis se cae la conexión se cierra con 1011 para que el cliente reconecte.
"""
import asyncio
import logging

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from redis.exceptions import RedisError
from starlette.websockets import WebSocketState

from app.core.config import settings

logger = logging.getLogger(__name__)

notifications_router = APIRouter(tags=["Notifications"])


def get_async_redis() -> aioredis.Redis:
    """Dependency: a dedicated async client per socket (pub/sub holds a connection)."""
    return aioredis.from_url(settings.redis_url, decode_responses=True)


async def _relay(ws: WebSocket, pubsub) -> None:
    async for message in pubsub.listen():
        if message.get("type") == "message":
            await ws.send_text(message["data"])


async def _wait_for_disconnect(ws: WebSocket) -> None:
    # Incoming frames are ignored
    try:
        while True:
            await ws.receive_text()
    except WebSocketDisconnect:
        return


@notifications_router.websocket("/ws/notifications")
async def notifications_ws(ws: WebSocket, client: aioredis.Redis = Depends(get_async_redis)):
    await ws.accept()
    pubsub = client.pubsub()
    try:
        await pubsub.subscribe(settings.NOTIFICATIONS_CHANNEL)
    except RedisError as e:
        logger.warning(f"Notification channel unavailable: {e}")
        await ws.close(code=status.WS_1011_INTERNAL_ERROR)
        await client.aclose()
        return

    logger.info(f"Notification client connected: {ws.client}")
    relay_task = asyncio.create_task(_relay(ws, pubsub))
    receive_task = asyncio.create_task(_wait_for_disconnect(ws))

    try:
        done, pending = await asyncio.wait({relay_task, receive_task}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        if relay_task in done:
            error = relay_task.exception()
            logger.warning(f"Notification relay stopped for {ws.client}: {error or 'channel closed'}")
            if ws.client_state == WebSocketState.CONNECTED:
                await ws.close(code=status.WS_1011_INTERNAL_ERROR)
        else:
            logger.info(f"Notification client disconnected: {ws.client}")
    finally:
        try:
            await pubsub.unsubscribe(settings.NOTIFICATIONS_CHANNEL)
            await pubsub.aclose()
        except RedisError as e:
            logger.debug(f"Pub/sub cleanup failed: {e}")
        await client.aclose()
