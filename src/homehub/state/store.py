"""Latest-value state store fed by the event bus.

This is the only component allowed to mutate channel state. Every other
component reads copies through :meth:`StateStore.get_snapshot` or reacts to
:class:`ChannelUpdate` notifications.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from homehub._constants import TOPIC_ROOT
from homehub.bus.event_bus import EventBus
from homehub.bus.message import Message
from homehub.exceptions import HubDecodeError
from homehub.models._base import HubBaseModel
from homehub.models.energy import DeviceReading
from homehub.models.payloads import EnergyPayload, UnknownPayload, decode_payload
from homehub.state.channels import TOPIC_CHANNELS, Channel, initial_state

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelUpdate:
    """Notification sent to listeners after a channel was merged."""

    channel: Channel
    topic: str
    payload: HubBaseModel
    """The decoded message that caused the update."""
    state: HubBaseModel
    """Channel state after the merge."""
    message: Message | None = None
    """The bus message, when the update came from one."""


Listener = Callable[[ChannelUpdate], None]


def _set_fields(payload: HubBaseModel) -> dict[str, Any]:
    return {name: getattr(payload, name) for name in payload.model_fields_set}


def _merge_devices(
    current: tuple[DeviceReading, ...] | None,
    incoming: tuple[DeviceReading, ...],
) -> tuple[DeviceReading, ...]:
    """Merge device readings by ``id``; unknown ids are appended."""
    merged: dict[int, DeviceReading] = {device.id: device for device in current or ()}
    for device in incoming:
        existing = merged.get(device.id)
        merged[device.id] = device if existing is None else existing.model_copy(update=_set_fields(device))
    return tuple(merged.values())


def _merge(channel: Channel, state: HubBaseModel, payload: HubBaseModel) -> HubBaseModel:
    update = _set_fields(payload)
    if channel is Channel.ENERGY and isinstance(state, EnergyPayload) and "devices" in update:
        update["devices"] = _merge_devices(state.devices, update["devices"])
    if not update:
        return state
    return state.model_copy(update=update)


class StateStore:
    """Per-channel latest-value store.

    Subscribes to ``home/#`` on construction. Each message is decoded into
    its topic variant and the fields it carries overwrite the channel state
    (arrival order wins). Malformed messages are logged and dropped.
    """

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._states: dict[Channel, HubBaseModel] = {channel: initial_state(channel) for channel in Channel}
        self._locks: dict[Channel, threading.Lock] = {channel: threading.Lock() for channel in Channel}
        self._listeners: list[tuple[Channel | None, Listener]] = []
        self._subscription = bus.subscribe(TOPIC_ROOT, self._on_message)

    def close(self) -> None:
        """Release the bus subscription. Safe to call more than once."""
        self._bus.unsubscribe(self._subscription)

    def _on_message(self, message: Message) -> None:
        channel = TOPIC_CHANNELS.get(message.topic)
        try:
            payload = decode_payload(message.topic, message.payload)
        except HubDecodeError as exc:
            _logger.warning("Dropping malformed message topic=%s: %s", message.topic, exc)
            return
        if channel is None or isinstance(payload, UnknownPayload):
            _logger.debug("Ignoring message on unmapped topic=%s", message.topic)
            return
        if not payload.model_fields_set:
            _logger.debug("Ignoring message without valid fields topic=%s", message.topic)
            return
        self.apply(channel, message.topic, payload, message=message)

    def apply(
        self,
        channel: Channel,
        topic: str,
        payload: HubBaseModel,
        *,
        message: Message | None = None,
    ) -> HubBaseModel:
        """Merge an already-decoded *payload* into *channel* and notify listeners."""
        with self._locks[channel]:
            state = _merge(channel, self._states[channel], payload)
            self._states[channel] = state
        _logger.debug("Channel %s updated from topic=%s", channel, topic)

        update = ChannelUpdate(channel=channel, topic=topic, payload=payload, state=state, message=message)
        for wanted, listener in list(self._listeners):
            if wanted is not None and wanted is not channel:
                continue
            try:
                listener(update)
            except Exception:
                _logger.exception("State listener failed for channel %s", channel)
        return state

    def add_listener(self, listener: Listener, channel: Channel | None = None) -> Callable[[], None]:
        """Call *listener* after every update (of *channel* only, if given).

        Returns a callable that removes the listener.
        """
        entry = (channel, listener)
        self._listeners.append(entry)

        def _remove() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return _remove

    def get_snapshot(self, channel: Channel) -> HubBaseModel:
        """Return a copy of the current state of *channel*."""
        with self._locks[channel]:
            return self._states[channel].model_copy(deep=True)

    def snapshot(self) -> dict[Channel, HubBaseModel]:
        """Copies of every channel, each read atomically."""
        return {channel: self.get_snapshot(channel) for channel in Channel}
