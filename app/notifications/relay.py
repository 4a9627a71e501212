"""
Best-effort booking update relay.

Updates go to Redis as short-lived keys (``booking_update:<user>:<ms>``)
when ``REDIS_URL`` is configured and reachable, and to in-process
subscribers otherwise. Nothing here guarantees delivery.
"""
import json
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import redis

from app.config import REDIS_URL
from app.logger import get_logger

logger = get_logger(__name__)

MESSAGE_TTL_SECONDS = 30
RECONNECT_BACKOFF_SECONDS = 30


class NotificationRelay:
    def __init__(self, redis_url: Optional[str] = None):
        self.redis_url = redis_url
        self.redis_client: Optional[redis.Redis] = None
        self._subscribers: Dict[str, List[Callable[[dict], None]]] = {}
        self._lock = threading.Lock()
        self._retry_after = 0.0

    def _mark_unavailable(self) -> None:
        self.redis_client = None
        self._retry_after = time.monotonic() + RECONNECT_BACKOFF_SECONDS

    def _get_client(self) -> Optional[redis.Redis]:
        """Lazy load the Redis client, None when Redis is not configured or unreachable"""
        if not self.redis_url:
            return None
        if self.redis_client is None:
            if time.monotonic() < self._retry_after:
                return None
            try:
                client = redis.from_url(
                    self.redis_url,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                )
                client.ping()
                self.redis_client = client
                logger.info("Connected to Redis for booking updates")
            except redis.RedisError as e:
                logger.warning(f"Redis unavailable, using in-process delivery: {e}")
                self._mark_unavailable()
                return None
        return self.redis_client

    def publish_booking_update(self, user_id: str, data: Dict[str, Any]) -> None:
        message = {
            "type": "BOOKING_UPDATE",
            "userId": str(user_id),
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        payload = json.dumps(message, default=str)

        client = self._get_client()
        if client is not None:
            try:
                key = f"booking_update:{user_id}:{int(time.time() * 1000)}"
                client.setex(key, MESSAGE_TTL_SECONDS, payload)
                logger.info(f"Booking update published to Redis for user: {user_id}")
                return
            except redis.RedisError as e:
                logger.error(f"Error publishing booking update to Redis: {e}")
                self._mark_unavailable()

        self._deliver_locally(str(user_id), json.loads(payload))

    def _deliver_locally(self, user_id: str, message: dict) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(user_id, []))
        for callback in callbacks:
            try:
                callback(message)
            except Exception as e:
                logger.error(f"Booking update subscriber failed for user {user_id}: {e}")
        logger.info(f"Booking update delivered in-process to {len(callbacks)} subscriber(s) of user: {user_id}")

    def subscribe(self, user_id: str, callback: Callable[[dict], None]) -> Callable[[], None]:
        """Register an in-process listener; returns a function that removes it"""
        user_id = str(user_id)
        with self._lock:
            self._subscribers.setdefault(user_id, []).append(callback)

        def unsubscribe():
            with self._lock:
                listeners = self._subscribers.get(user_id, [])
                if callback in listeners:
                    listeners.remove(callback)
                if not listeners:
                    self._subscribers.pop(user_id, None)

        return unsubscribe

    def fetch_pending(self, user_id: str) -> List[dict]:
        """Drain queued Redis messages for a user, oldest first"""
        client = self._get_client()
        if client is None:
            return []
        messages = []
        for key in sorted(client.scan_iter(match=f"booking_update:{user_id}:*")):
            raw = client.get(key)
            if raw:
                messages.append(json.loads(raw))
            client.delete(key)
        return messages


notification_relay = NotificationRelay(REDIS_URL)
