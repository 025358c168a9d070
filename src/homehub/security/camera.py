"""Security camera control and snapshots."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from homehub._constants import TOPIC_SECURITY_CAMERA
from homehub.bus.event_bus import EventBus
from homehub.exceptions import HubValidationError
from homehub.models.payloads import CameraPayload
from homehub.models.security import CAMERA_LOCATIONS, ActivityType, CameraSnapshot
from homehub.security.activity import ActivityLog
from homehub.session import HubSession
from homehub.state.channels import Channel
from homehub.state.store import ChannelUpdate, StateStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CameraController:
    """Turns the camera feed on and off and takes snapshots.

    The selected camera defaults to ``frontDoor``. The enabled flag follows
    ``home/security/camera`` messages from any publisher.
    """

    def __init__(
        self,
        bus: EventBus,
        store: StateStore,
        activity: ActivityLog,
        *,
        session: HubSession | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._bus = bus
        self._activity = activity
        self._session = session
        self._clock = clock
        self._enabled = session.preferences.camera_on if session is not None else False
        self._selected = "frontDoor"
        self._last_snapshot: CameraSnapshot | None = None
        self._snapshot_ids = itertools.count(1)
        self._remove_listener = store.add_listener(self._on_camera, Channel.CAMERA)

    def close(self) -> None:
        self._remove_listener()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def selected(self) -> str:
        return self._selected

    @property
    def last_snapshot(self) -> CameraSnapshot | None:
        return self._last_snapshot

    def set_enabled(self, enabled: bool) -> None:
        self._bus.publish(TOPIC_SECURITY_CAMERA, {"enabled": enabled})
        self._apply(enabled)
        self._activity.record(ActivityType.SYSTEM, f"Camera {'activated' if enabled else 'deactivated'}")

    def select(self, location: str) -> str:
        """Select the camera shown and used for snapshots."""
        if location not in CAMERA_LOCATIONS:
            raise HubValidationError(
                f"Unknown camera {location!r}; expected one of {', '.join(CAMERA_LOCATIONS)}"
            )
        self._selected = location
        return location

    def take_snapshot(self) -> CameraSnapshot:
        if not self._enabled:
            raise HubValidationError("Camera is turned off; turn it on before taking a snapshot")
        snapshot = CameraSnapshot(id=next(self._snapshot_ids), timestamp=self._clock(), location=self._selected)
        self._last_snapshot = snapshot
        self._activity.record(ActivityType.CAMERA, f"Snapshot taken from {snapshot.location_name}")
        return snapshot

    def _apply(self, enabled: bool) -> None:
        self._enabled = enabled
        if self._session is not None:
            self._session.preferences.camera_on = enabled

    def _on_camera(self, update: ChannelUpdate) -> None:
        payload = update.payload
        if isinstance(payload, CameraPayload) and payload.enabled is not None and payload.enabled != self._enabled:
            _logger.debug("Camera %s by remote command", "enabled" if payload.enabled else "disabled")
            self._apply(payload.enabled)
