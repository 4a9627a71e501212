import json

import time

import redis

from app.notifications import relay as relay_module
from app.notifications.relay import MESSAGE_TTL_SECONDS, RECONNECT_BACKOFF_SECONDS, NotificationRelay


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.ttls = {}

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    def scan_iter(self, match):
        prefix = match.rstrip("*")
        return [key for key in list(self.store) if key.startswith(prefix)]

    def get(self, key):
        return self.store.get(key)

    def delete(self, key):
        self.store.pop(key, None)


class BrokenRedis(FakeRedis):
    def setex(self, key, ttl, value):
        raise redis.ConnectionError("connection refused")


def test_without_redis_updates_reach_local_subscribers():
    relay = NotificationRelay()
    received = []
    relay.subscribe("user-1", received.append)
    relay.subscribe("user-2", lambda message: received.append(("wrong user", message)))

    relay.publish_booking_update("user-1", {"booking": {"status": "confirmed"}})

    assert len(received) == 1
    assert received[0]["type"] == "BOOKING_UPDATE"
    assert received[0]["userId"] == "user-1"
    assert received[0]["data"] == {"booking": {"status": "confirmed"}}
    assert "timestamp" in received[0]


def test_unsubscribe_stops_delivery():
    relay = NotificationRelay()
    received = []
    unsubscribe = relay.subscribe("user-1", received.append)

    unsubscribe()
    relay.publish_booking_update("user-1", {})

    assert received == []


def test_failing_subscriber_does_not_stop_others():
    relay = NotificationRelay()
    received = []

    def explode(message):
        raise RuntimeError("boom")

    relay.subscribe("user-1", explode)
    relay.subscribe("user-1", received.append)

    relay.publish_booking_update("user-1", {})

    assert len(received) == 1


def test_updates_are_queued_in_redis_with_expiry():
    relay = NotificationRelay("redis://localhost:6379/0")
    relay.redis_client = FakeRedis()
    local = []
    relay.subscribe("user-1", local.append)

    relay.publish_booking_update("user-1", {"booking": {"id": "b1"}})

    assert local == []
    (key, ttl), = relay.redis_client.ttls.items()
    assert key.startswith("booking_update:user-1:")
    assert ttl == MESSAGE_TTL_SECONDS
    assert json.loads(relay.redis_client.store[key])["data"]["booking"]["id"] == "b1"

    pending = relay.fetch_pending("user-1")
    assert [m["data"]["booking"]["id"] for m in pending] == ["b1"]
    assert relay.redis_client.store == {}


def test_redis_errors_fall_back_to_local_delivery():
    relay = NotificationRelay("redis://localhost:6379/0")
    relay.redis_client = BrokenRedis()
    received = []
    relay.subscribe("user-1", received.append)

    relay.publish_booking_update("user-1", {"booking": {"id": "b1"}})

    assert len(received) == 1


def test_fetch_pending_without_redis_is_empty():
    assert NotificationRelay().fetch_pending("user-1") == []


class UnreachableRedis(FakeRedis):
    def ping(self):
        raise redis.ConnectionError("connection refused")


class SteppingClock:
    def __init__(self):
        self.now = 1000.0

    def monotonic(self):
        return self.now

    def time(self):
        return time.time()


def test_failed_connect_is_not_retried_on_every_publish(monkeypatch):
    attempts = []

    def connect(url, **kwargs):
        attempts.append(kwargs["socket_connect_timeout"])
        return UnreachableRedis()

    clock = SteppingClock()
    monkeypatch.setattr(redis, "from_url", connect)
    monkeypatch.setattr(relay_module, "time", clock)
    relay = NotificationRelay("redis://localhost:6379/0")
    received = []
    relay.subscribe("user-1", received.append)

    for _ in range(3):
        relay.publish_booking_update("user-1", {})

    assert len(attempts) == 1
    assert len(received) == 3

    clock.now += RECONNECT_BACKOFF_SECONDS + 1
    relay.publish_booking_update("user-1", {})

    assert len(attempts) == 2


def test_publish_error_drops_the_client_until_backoff_expires(monkeypatch):
    attempts = []
    monkeypatch.setattr(redis, "from_url", lambda url, **kwargs: attempts.append(url) or FakeRedis())
    relay = NotificationRelay("redis://localhost:6379/0")
    relay.redis_client = BrokenRedis()

    relay.publish_booking_update("user-1", {})
    relay.publish_booking_update("user-1", {})

    assert relay.redis_client is None
    assert attempts == []
