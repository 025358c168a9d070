from __future__ import annotations

from datetime import UTC, datetime

import pytest

from homehub.models import ActivityType
from homehub.security import ActivityLog
from homehub.state import BoundedLog


class TestBoundedLog:
    def test_newest_first_and_eviction(self) -> None:
        log: BoundedLog[int] = BoundedLog(3)
        for value in range(5):
            log.append(value)

        assert log.entries() == [4, 3, 2]
        assert list(log) == [4, 3, 2]
        assert log.latest() == 4
        assert len(log) == 3

    def test_empty(self) -> None:
        log: BoundedLog[str] = BoundedLog(2)
        assert log.latest() is None
        assert log.entries() == []

    def test_clear(self) -> None:
        log: BoundedLog[str] = BoundedLog(2)
        log.append("a")
        log.clear()
        assert len(log) == 0

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_capacity_must_be_positive(self, capacity: int) -> None:
        with pytest.raises(ValueError):
            BoundedLog(capacity)


class TestActivityLog:
    def test_keeps_newest_fifty(self) -> None:
        log = ActivityLog()
        for n in range(51):
            log.record(ActivityType.MOTION, f"event {n}")

        entries = log.entries()
        assert log.capacity == 50
        assert len(entries) == 50
        assert entries[0].message == "event 50"
        assert entries[-1].message == "event 1"

    def test_ids_increase(self) -> None:
        log = ActivityLog(capacity=3)
        first = log.record(ActivityType.SYSTEM, "Security system initialized")
        second = log.record(ActivityType.DOOR, "Door opened at Front Door")
        assert second.id == first.id + 1

    def test_filter_by_type(self) -> None:
        log = ActivityLog()
        log.record(ActivityType.MOTION, "Motion detected at Garage")
        log.record(ActivityType.ALARM, "Alarm triggered: motion at Garage")
        log.record(ActivityType.MOTION, "Motion detected at Backyard")

        assert [entry.message for entry in log.entries(ActivityType.MOTION)] == [
            "Motion detected at Backyard",
            "Motion detected at Garage",
        ]

    def test_kind_keyword(self) -> None:
        log = ActivityLog()
        entry = log.record(kind=ActivityType.DOOR, message="Door closed at Front Door")
        log.record(ActivityType.SYSTEM, "Camera activated")

        assert entry.type is ActivityType.DOOR
        assert log.entries(kind=ActivityType.DOOR) == [entry]

    def test_uses_clock(self) -> None:
        fixed = datetime(2024, 10, 20, 8, 30, tzinfo=UTC)
        log = ActivityLog(clock=lambda: fixed)
        assert log.record(ActivityType.CAMERA, "Snapshot taken from Garage").timestamp == fixed
