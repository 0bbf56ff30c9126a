"""Unit tests for the connection registry and the delivery channel."""

from __future__ import annotations

import asyncio

from livecast.core.contracts import SNAPSHOT_EVENT, Snapshot
from livecast.live.channel import DeliveryChannel
from livecast.live.registry import ConnectionRegistry


def test_count_tracks_connect_and_disconnect() -> None:
    """Connect increments, disconnect decrements, double disconnect is harmless."""
    registry = ConnectionRegistry()
    a = registry.connect()
    b = registry.connect()
    assert registry.count == 2
    assert a.id != b.id

    registry.disconnect(a, reason="client namespace disconnect")
    registry.disconnect(a)
    assert registry.count == 1
    assert registry.observers() == (b,)


def test_has_observers_bootstrap_exception() -> None:
    """No snapshot yet: always interested. Afterwards: only with observers."""
    registry = ConnectionRegistry()
    assert registry.has_observers(snapshot_exists=False) is True
    assert registry.has_observers(snapshot_exists=True) is False

    observer = registry.connect()
    assert registry.has_observers(snapshot_exists=True) is True
    registry.disconnect(observer)
    assert registry.has_observers(snapshot_exists=True) is False


def test_broadcast_reaches_every_observer() -> None:
    """Every connected observer gets its own copy of the envelope."""
    registry = ConnectionRegistry()
    channel = DeliveryChannel(registry, lambda: None)
    first, second = registry.connect(), registry.connect()

    delivered = channel.broadcast("prompt", {"q": 1}, request_id="r1")

    assert delivered == 2
    for observer in (first, second):
        assert observer.queue.get_nowait() == {"event": "prompt", "data": {"q": 1}, "id": "r1"}


def test_broadcast_without_observers_is_noop() -> None:
    """Nobody connected: nothing is queued and nothing fails."""
    channel = DeliveryChannel(ConnectionRegistry(), lambda: None)
    assert channel.send(SNAPSHOT_EVENT, {"pageUrl": "x"}) == 0


def test_slow_observer_drops_oldest_instead_of_blocking() -> None:
    """A full queue loses its oldest entry; the newest is always kept."""
    registry = ConnectionRegistry(queue_size=2)
    channel = DeliveryChannel(registry, lambda: None)
    slow = registry.connect()

    for n in range(5):
        channel.broadcast("tick", n)

    assert slow.queue.qsize() == 2
    assert [slow.queue.get_nowait()["data"] for _ in range(2)] == [3, 4]


def test_unicast_last_resends_current_snapshot_only_to_requester() -> None:
    """`unicast_last` targets one observer and is a no-op before any snapshot."""
    registry = ConnectionRegistry()
    holder: dict[str, Snapshot | None] = {"last": None}
    channel = DeliveryChannel(registry, lambda: holder["last"])
    asker, bystander = registry.connect(), registry.connect()

    assert channel.unicast_last(asker) is False
    assert asker.queue.empty()

    holder["last"] = Snapshot(page_url="https://example.com", html_content="<p>hi</p>")
    assert channel.unicast_last(asker) is True

    envelope = asker.queue.get_nowait()
    assert envelope["event"] == SNAPSHOT_EVENT
    assert envelope["data"]["pageUrl"] == "https://example.com"
    assert "id" not in envelope
    assert bystander.queue.empty()


def test_queues_work_inside_event_loop() -> None:
    """Observers registered in a running loop can await their queue."""

    async def scenario() -> object:
        registry = ConnectionRegistry()
        channel = DeliveryChannel(registry, lambda: None)
        observer = registry.connect()
        waiter = asyncio.create_task(observer.queue.get())
        await asyncio.sleep(0)
        channel.broadcast("ping", None)
        return await asyncio.wait_for(waiter, timeout=1)

    assert asyncio.run(scenario()) == {"event": "ping", "data": None}
