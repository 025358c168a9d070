"""Topic-based publish/subscribe bus.

Delivery discipline:

* every topic has its own FIFO lane, drained by at most one asyncio task;
* all handlers for one message (in registration order) complete before the
  next message on the same topic is dispatched;
* lanes of different topics drain independently, so cross-topic order is
  unspecified;
* handler failures are logged and never reach the publisher.

Traffic arriving from a transport thread is moved onto the bus event loop
with ``loop.call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import enum
import functools
import inspect
import itertools
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from homehub.bus.message import Message, encode_payload
from homehub.bus.topics import topic_matches, validate_pattern, validate_topic
from homehub.bus.transport import Endpoint, LoopbackTransport, Transport, parse_endpoint
from homehub.exceptions import HubConnectionError, HubNotConnectedError

_logger = logging.getLogger(__name__)

Handler = Callable[[Message], Awaitable[None] | None]


class ConnectionState(enum.StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class ConnectionInfo:
    """Details of an established bus connection."""

    endpoint: Endpoint
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(eq=False)
class Subscription:
    """Handle returned by :meth:`EventBus.subscribe`."""

    id: int
    pattern: str
    handler: Handler
    active: bool = True


class EventBus:
    """Async publish/subscribe bus with pluggable transport.

    Usage::

        bus = EventBus()
        await bus.connect("memory://local")
        bus.subscribe("home/energy/#", on_energy)
        bus.publish("home/energy/current", {"watts": 250})
        await bus.wait_idle()
    """

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        client_id: str = "homehub",
        keepalive: int = 60,
        connect_timeout: float = 10.0,
    ) -> None:
        self._transport = transport
        self._transport_injected = transport is not None
        self._client_id = client_id
        self._keepalive = keepalive
        self._connect_timeout = connect_timeout

        self._state = ConnectionState.DISCONNECTED
        self._connection: ConnectionInfo | None = None
        self._endpoint: Endpoint | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

        self._subscriptions: list[Subscription] = []
        self._ids = itertools.count(1)
        self._lanes: dict[str, deque[Message]] = {}
        self._drainers: dict[str, asyncio.Task[None]] = {}

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def connection(self) -> ConnectionInfo | None:
        return self._connection

    @property
    def transport(self) -> Transport | None:
        return self._transport

    async def connect(self, endpoint: str | Endpoint) -> ConnectionInfo:
        """Open the transport for *endpoint* and enter ``CONNECTED``.

        Connecting again to the endpoint already in use is a no-op. Raises
        :class:`HubConnectionError` (state stays ``DISCONNECTED``) when the
        transport cannot be opened.
        """
        target = endpoint if isinstance(endpoint, Endpoint) else parse_endpoint(endpoint)
        if self._connection is not None and self.is_connected and self._connection.endpoint == target:
            return self._connection
        if self._state is not ConnectionState.DISCONNECTED:
            await self.disconnect()

        loop = asyncio.get_running_loop()
        self._loop = loop
        self._endpoint = target
        transport = self._transport_for(target)

        self._state = ConnectionState.CONNECTING
        _logger.debug("Bus connecting endpoint=%s", target)
        try:
            await loop.run_in_executor(
                None,
                functools.partial(
                    transport.open,
                    target,
                    on_message=self._on_transport_message,
                    on_disconnect=self._on_transport_disconnect,
                ),
            )
        except HubConnectionError as exc:
            self._state = ConnectionState.DISCONNECTED
            _logger.warning("Bus connect to %s failed: %s", target, exc)
            raise
        except OSError as exc:
            self._state = ConnectionState.DISCONNECTED
            _logger.warning("Bus connect to %s failed: %s", target, exc)
            raise HubConnectionError(f"Connect to {target} failed: {exc}", endpoint=str(target)) from exc

        self._state = ConnectionState.CONNECTED
        self._connection = ConnectionInfo(endpoint=target)
        _logger.info("Bus connected endpoint=%s", target)
        return self._connection

    async def reconnect(self) -> ConnectionInfo:
        """Reconnect to the last endpoint; a no-op while connected."""
        if self._endpoint is None:
            raise HubConnectionError("No endpoint to reconnect to; call connect() first")
        return await self.connect(self._endpoint)

    async def disconnect(self) -> None:
        """Close the transport. Already-accepted messages still reach local subscribers."""
        transport = self._transport
        was_connected = self._state is not ConnectionState.DISCONNECTED
        self._state = ConnectionState.DISCONNECTED
        self._connection = None
        if transport is None or not (was_connected or transport.is_open):
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, transport.close)
        _logger.info("Bus disconnected endpoint=%s", self._endpoint)

    async def close(self) -> None:
        """Disconnect and cancel any pending delivery."""
        await self.disconnect()
        drainers = list(self._drainers.values())
        for task in drainers:
            task.cancel()
        if drainers:
            await asyncio.gather(*drainers, return_exceptions=True)
        self._drainers.clear()
        self._lanes.clear()

    def _transport_for(self, endpoint: Endpoint) -> Transport:
        transport = self._transport
        if transport is not None and (self._transport_injected or transport.supports(endpoint)):
            return transport

        if endpoint.is_memory:
            transport = LoopbackTransport()
        else:
            from homehub.bus._mqtt import MqttTransport

            transport = MqttTransport(
                client_id=self._client_id,
                keepalive=self._keepalive,
                connect_timeout=self._connect_timeout,
            )
        for sub in self._subscriptions:
            transport.add_filter(sub.pattern)
        self._transport = transport
        return transport

    def _on_transport_message(self, topic: str, payload: bytes) -> None:
        # Retained messages can arrive while open() is still running.
        if self._state is ConnectionState.DISCONNECTED:
            _logger.debug("Dropping inbound message topic=%s while %s", topic, self._state)
            return
        self._call_in_loop(self._enqueue, Message(topic=topic, payload=payload))

    def _on_transport_disconnect(self, reason: str) -> None:
        self._call_in_loop(self._mark_disconnected, reason)

    def _mark_disconnected(self, reason: str) -> None:
        if self._state is ConnectionState.DISCONNECTED:
            return
        self._state = ConnectionState.DISCONNECTED
        self._connection = None
        _logger.warning("Bus lost connection to %s: %s", self._endpoint, reason)

    def _call_in_loop(self, fn: Callable[..., None], *args: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            _logger.debug("Bus loop unavailable; dropping %s", getattr(fn, "__name__", fn))
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            fn(*args)
        else:
            loop.call_soon_threadsafe(fn, *args)

    # ------------------------------------------------------------------
    # Publish / subscribe
    # ------------------------------------------------------------------

    def publish(self, topic: str, payload: Any) -> Message:
        """Publish *payload* on *topic*.

        Delivery to local subscribers is asynchronous. Raises
        :class:`HubNotConnectedError` unless the bus is connected.
        """
        validate_topic(topic)
        transport = self._transport
        if self._state is not ConnectionState.CONNECTED or transport is None:
            raise HubNotConnectedError(
                f"Cannot publish to {topic}: bus is {self._state}",
                endpoint=str(self._endpoint or ""),
            )

        message = Message(topic=topic, payload=encode_payload(payload))
        transport.send(topic, message.payload)
        _logger.debug("Publish topic=%s payload=%s", topic, message.text())
        self._call_in_loop(self._enqueue, message)
        return message

    def subscribe(self, pattern: str, handler: Handler) -> Subscription:
        """Register *handler* for every topic matching *pattern*.

        Handlers may be plain callables or coroutine functions.
        """
        validate_pattern(pattern)
        sub = Subscription(id=next(self._ids), pattern=pattern, handler=handler)
        self._subscriptions.append(sub)
        if self._transport is not None:
            self._transport.add_filter(pattern)
        _logger.debug("Subscribed id=%s pattern=%s", sub.id, pattern)
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove exactly *subscription*; no-op if it is already gone."""
        if subscription not in self._subscriptions:
            return
        self._subscriptions.remove(subscription)
        subscription.active = False
        if self._transport is not None:
            self._transport.remove_filter(subscription.pattern)
        _logger.debug("Unsubscribed id=%s pattern=%s", subscription.id, subscription.pattern)

    def subscriber_count(self, topic: str | None = None) -> int:
        """Number of subscriptions, or of those matching *topic*."""
        if topic is None:
            return len(self._subscriptions)
        return sum(1 for sub in self._subscriptions if topic_matches(sub.pattern, topic))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _enqueue(self, message: Message) -> None:
        lane = self._lanes.get(message.topic)
        if lane is None:
            lane = self._lanes[message.topic] = deque()
        lane.append(message)
        if message.topic not in self._drainers:
            loop = self._loop
            assert loop is not None  # noqa: S101
            self._drainers[message.topic] = loop.create_task(
                self._drain(message.topic, lane),
                name=f"homehub-bus:{message.topic}",
            )

    async def _drain(self, topic: str, lane: deque[Message]) -> None:
        try:
            while lane:
                await self._deliver(lane.popleft())
        finally:
            self._drainers.pop(topic, None)
            if not lane and self._lanes.get(topic) is lane:
                del self._lanes[topic]

    async def _deliver(self, message: Message) -> None:
        matching = [sub for sub in self._subscriptions if topic_matches(sub.pattern, message.topic)]
        for sub in matching:
            if not sub.active:
                continue
            try:
                result = sub.handler(message)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                _logger.exception("Subscriber id=%s pattern=%s failed on topic=%s", sub.id, sub.pattern, message.topic)

    async def wait_idle(self) -> None:
        """Wait until every lane is drained, including follow-up publishes.

        Must not be awaited from inside a handler.
        """
        while self._drainers:
            await asyncio.gather(*list(self._drainers.values()), return_exceptions=True)
