"""Channel state derived from bus traffic."""

from homehub.state.channels import TOPIC_CHANNELS, Channel, initial_state
from homehub.state.logs import BoundedLog
from homehub.state.store import ChannelUpdate, Listener, StateStore

__all__ = [
    "TOPIC_CHANNELS",
    "BoundedLog",
    "Channel",
    "ChannelUpdate",
    "Listener",
    "StateStore",
    "initial_state",
]
