"""Publish/subscribe event bus and its transports."""

from homehub.bus.event_bus import ConnectionInfo, ConnectionState, EventBus, Handler, Subscription
from homehub.bus.message import Message, encode_payload
from homehub.bus.topics import topic_matches
from homehub.bus.transport import Endpoint, LoopbackTransport, Transport, parse_endpoint

__all__ = [
    "ConnectionInfo",
    "ConnectionState",
    "Endpoint",
    "EventBus",
    "Handler",
    "LoopbackTransport",
    "Message",
    "Subscription",
    "Transport",
    "encode_payload",
    "parse_endpoint",
    "topic_matches",
]
