"""Bus transports and endpoint parsing.

A transport moves encoded messages between this process and other
publishers. The :class:`~homehub.bus.event_bus.EventBus` always delivers its
own publishes to local subscribers itself; transports only carry traffic to
and from the outside world.

Transport callbacks may fire on any thread. The bus marshals them onto its
event loop.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Callable
from dataclasses import dataclass

from homehub.exceptions import HubConfigError, HubConnectionError, HubNotConnectedError

_logger = logging.getLogger(__name__)

MessageCallback = Callable[[str, bytes], None]
DisconnectCallback = Callable[[str], None]

_DEFAULT_PORTS: dict[str, int] = {
    "memory": 0,
    "mqtt": 1883,
    "tcp": 1883,
    "mqtts": 8883,
    "ssl": 8883,
}


@dataclass(frozen=True)
class Endpoint:
    """Parsed bus endpoint."""

    scheme: str
    host: str
    port: int

    @property
    def tls(self) -> bool:
        return self.scheme in {"mqtts", "ssl"}

    @property
    def is_memory(self) -> bool:
        return self.scheme == "memory"

    def __str__(self) -> str:
        if self.is_memory:
            return f"memory://{self.host}"
        return f"{self.scheme}://{self.host}:{self.port}"


def parse_endpoint(raw_endpoint: str) -> Endpoint:
    """Parse ``scheme://host[:port][/path]`` into an :class:`Endpoint`.

    A missing scheme means ``mqtt``. Raises :class:`HubConfigError` for
    empty values and unsupported schemes.
    """
    value = raw_endpoint.strip()
    if not value:
        raise HubConfigError("Endpoint value is empty")

    scheme = "mqtt"
    if "://" in value:
        scheme, value = value.split("://", 1)
        scheme = scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        raise HubConfigError(f"Unsupported endpoint scheme {scheme!r} in {raw_endpoint!r}")
    if "/" in value:
        value = value.split("/", 1)[0]

    if scheme == "memory":
        return Endpoint(scheme=scheme, host=value or "local", port=0)

    host, _, maybe_port = value.rpartition(":")
    if host and maybe_port.isdigit():
        return Endpoint(scheme=scheme, host=host, port=int(maybe_port))
    if not value:
        raise HubConfigError(f"Endpoint {raw_endpoint!r} has no host")
    return Endpoint(scheme=scheme, host=value, port=_DEFAULT_PORTS[scheme])


class Transport(abc.ABC):
    """Connection to the outside world for an :class:`EventBus`."""

    @property
    @abc.abstractmethod
    def is_open(self) -> bool:
        """Whether the transport currently holds a live connection."""

    @abc.abstractmethod
    def supports(self, endpoint: Endpoint) -> bool:
        """Whether this transport can open *endpoint*."""

    @abc.abstractmethod
    def open(
        self,
        endpoint: Endpoint,
        *,
        on_message: MessageCallback,
        on_disconnect: DisconnectCallback,
    ) -> None:
        """Connect (blocking). Raises :class:`HubConnectionError` on failure."""

    @abc.abstractmethod
    def close(self) -> None:
        """Disconnect. Safe to call when already closed."""

    @abc.abstractmethod
    def send(self, topic: str, payload: bytes) -> None:
        """Forward one message to other participants."""

    def add_filter(self, pattern: str) -> None:  # noqa: B027
        """A local subscription on *pattern* was added."""

    def remove_filter(self, pattern: str) -> None:  # noqa: B027
        """The last local subscription on *pattern* was removed."""


class LoopbackTransport(Transport):
    """In-process transport: nothing leaves the process.

    ``available`` can be cleared to make ``open()`` fail the way an
    unreachable broker would. :meth:`inject` delivers a message as if another
    publisher had sent it and :meth:`drop` simulates losing the link.
    """

    def __init__(self, *, available: bool = True) -> None:
        self.available = available
        self.sent_count = 0
        self._endpoint: Endpoint | None = None
        self._on_message: MessageCallback | None = None
        self._on_disconnect: DisconnectCallback | None = None
        self._filters: dict[str, int] = {}

    @property
    def is_open(self) -> bool:
        return self._endpoint is not None

    @property
    def filters(self) -> frozenset[str]:
        return frozenset(self._filters)

    def supports(self, endpoint: Endpoint) -> bool:
        return endpoint.is_memory

    def open(
        self,
        endpoint: Endpoint,
        *,
        on_message: MessageCallback,
        on_disconnect: DisconnectCallback,
    ) -> None:
        if not self.available:
            raise HubConnectionError(f"Endpoint {endpoint} is unavailable", endpoint=str(endpoint))
        self._endpoint = endpoint
        self._on_message = on_message
        self._on_disconnect = on_disconnect
        _logger.debug("Loopback transport opened endpoint=%s", endpoint)

    def close(self) -> None:
        if self._endpoint is None:
            return
        _logger.debug("Loopback transport closed endpoint=%s", self._endpoint)
        self._endpoint = None
        self._on_message = None
        self._on_disconnect = None

    def send(self, topic: str, payload: bytes) -> None:
        if self._endpoint is None:
            raise HubNotConnectedError(f"Loopback transport is closed, cannot send to {topic}")
        self.sent_count += 1

    def add_filter(self, pattern: str) -> None:
        self._filters[pattern] = self._filters.get(pattern, 0) + 1

    def remove_filter(self, pattern: str) -> None:
        remaining = self._filters.get(pattern, 0) - 1
        if remaining > 0:
            self._filters[pattern] = remaining
        else:
            self._filters.pop(pattern, None)

    def inject(self, topic: str, payload: bytes) -> None:
        """Deliver *payload* as though it arrived from another publisher."""
        if self._on_message is None:
            raise HubNotConnectedError("Loopback transport is closed")
        self._on_message(topic, payload)

    def drop(self, reason: str = "link lost") -> None:
        """Simulate an unexpected disconnect."""
        callback = self._on_disconnect
        self.close()
        if callback is not None:
            callback(reason)
