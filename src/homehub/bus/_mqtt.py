"""Internal MQTT transport built on the threaded paho-mqtt client."""

from __future__ import annotations

import logging
import threading
from typing import Any, cast

import paho.mqtt.client as mqtt
from paho.mqtt.subscribeoptions import SubscribeOptions

from homehub.bus.topics import broker_filter
from homehub.bus.transport import DisconnectCallback, Endpoint, MessageCallback, Transport
from homehub.exceptions import HubConnectionError, HubNotConnectedError


def _subscribe_options() -> SubscribeOptions:
    # The bus already delivered our own publishes locally; do not echo them.
    return SubscribeOptions(qos=0, noLocal=True)


class MqttTransport(Transport):
    """Threaded paho-mqtt transport.

    Broker callbacks run on paho's network thread and are handed to the bus
    callbacks unchanged; the bus is responsible for moving them onto its
    event loop.
    """

    def __init__(
        self,
        *,
        client_id: str,
        keepalive: int = 60,
        connect_timeout: float = 10.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client_id = client_id
        self._keepalive = keepalive
        self._connect_timeout = connect_timeout
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._filters: dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._running

    def supports(self, endpoint: Endpoint) -> bool:
        return not endpoint.is_memory

    def open(
        self,
        endpoint: Endpoint,
        *,
        on_message: MessageCallback,
        on_disconnect: DisconnectCallback,
    ) -> None:
        self.close()
        self._logger.debug(
            "MQTT transport open requested host=%s port=%s tls=%s client_id=%s",
            endpoint.host,
            endpoint.port,
            endpoint.tls,
            self._client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=self._client_id,
            protocol=mqtt.MQTTv5,
            reconnect_on_failure=False,
        )
        client.enable_logger(self._logger)
        if endpoint.tls:
            client.tls_set()

        connack = threading.Event()
        outcome: dict[str, Any] = {}

        def _on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            outcome["reason_code"] = reason_code
            if reason_code.value != 0:
                self._logger.warning("MQTT connect refused: %s", reason_code)
                connack.set()
                return
            self._logger.debug("MQTT connected reason=%s", reason_code)
            with self._lock:
                filters = sorted(self._filters)
            for topic_filter in filters:
                self._logger.debug("MQTT subscribing filter=%s", topic_filter)
                c.subscribe(topic_filter, options=_subscribe_options())
            connack.set()

        def _on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                self._logger.debug("Received PUBLISH topic=%s bytes=%d", msg.topic, len(msg.payload))
                on_message(msg.topic, bytes(msg.payload))
            except Exception:
                self._logger.debug("MQTT inbound handling failure", exc_info=True)

        def _on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._running = False
                self._logger.warning("MQTT disconnected: %s", reason_code)
                on_disconnect(str(reason_code))

        client.on_connect = _on_connect
        client.on_message = _on_message
        client.on_disconnect = _on_disconnect

        try:
            client.connect(endpoint.host, endpoint.port, keepalive=self._keepalive)
        except (OSError, ValueError) as exc:
            raise HubConnectionError(f"MQTT connect to {endpoint} failed: {exc}", endpoint=str(endpoint)) from exc
        client.loop_start()

        reason_code = outcome.get("reason_code") if connack.wait(self._connect_timeout) else None
        if reason_code is None or reason_code.value != 0:
            try:
                client.disconnect()
            finally:
                client.loop_stop()
            detail = "timed out waiting for CONNACK" if reason_code is None else f"refused: {reason_code}"
            raise HubConnectionError(f"MQTT connect to {endpoint} {detail}", endpoint=str(endpoint))

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def close(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    def send(self, topic: str, payload: bytes) -> None:
        client = self._client
        if client is None or not self._running:
            raise HubNotConnectedError(f"MQTT transport is not connected, cannot send to {topic}")
        info = client.publish(topic, payload, qos=0)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise HubConnectionError(f"MQTT publish to {topic} failed: {mqtt.error_string(info.rc)}")

    def add_filter(self, pattern: str) -> None:
        topic_filter = broker_filter(pattern)
        with self._lock:
            count = self._filters.get(topic_filter, 0)
            self._filters[topic_filter] = count + 1
        client = self._client
        if count == 0 and client is not None and self._running:
            client.subscribe(topic_filter, options=_subscribe_options())

    def remove_filter(self, pattern: str) -> None:
        topic_filter = broker_filter(pattern)
        with self._lock:
            remaining = self._filters.get(topic_filter, 0) - 1
            if remaining > 0:
                self._filters[topic_filter] = remaining
                return
            self._filters.pop(topic_filter, None)
        client = self._client
        if client is not None and self._running:
            client.unsubscribe(topic_filter)
