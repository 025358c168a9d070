from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import pytest
import pytest_asyncio

from homehub.bus import EventBus, LoopbackTransport, Message
from homehub.security import ActivityLog
from homehub.state import StateStore


@dataclass
class Recorder:
    """Collects messages delivered to a subscription."""

    messages: list[Message] = field(default_factory=list)

    def __call__(self, message: Message) -> None:
        self.messages.append(message)

    @property
    def payloads(self) -> list[Any]:
        return [message.json() for message in self.messages]


@pytest.fixture
def transport() -> LoopbackTransport:
    return LoopbackTransport()


@pytest_asyncio.fixture
async def bus(transport: LoopbackTransport) -> AsyncIterator[EventBus]:
    bus = EventBus(transport)
    await bus.connect("memory://test")
    yield bus
    await bus.close()


@pytest.fixture
def store(bus: EventBus) -> StateStore:
    return StateStore(bus)


@pytest.fixture
def activity() -> ActivityLog:
    return ActivityLog()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
