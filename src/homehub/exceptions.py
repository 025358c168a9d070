"""Custom exception hierarchy for homehub."""

from __future__ import annotations


class HubError(Exception):
    """Base exception for all homehub errors."""


class HubConfigError(HubError):
    """Invalid or missing configuration."""


class HubConnectionError(HubError, ConnectionError):
    """Transport unavailable (broker unreachable, CONNACK refused, link lost).

    Non-fatal: callers may retry ``connect()`` / ``reconnect()``.
    """

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class HubNotConnectedError(HubConnectionError):
    """Publish attempted while the bus is not in the ``CONNECTED`` state."""


class HubDecodeError(HubError, ValueError):
    """A message payload could not be decoded.

    Raised by the payload codec only; bus consumers catch it, log it and
    drop the message.
    """

    def __init__(self, message: str, *, topic: str = "") -> None:
        self.topic = topic
        super().__init__(message)


class HubInvalidTransitionError(HubError):
    """A state machine command is not legal from the current state.

    The state is left unchanged.
    """

    def __init__(self, message: str, *, current: str = "", action: str = "") -> None:
        self.current = current
        self.action = action
        super().__init__(message)


class HubValidationError(HubError, ValueError):
    """User input rejected before any state was mutated."""
