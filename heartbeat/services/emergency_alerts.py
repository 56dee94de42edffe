"""
Emergency alert fan-out.

Each connected viewer runs an EmergencyAlertListener over a subscription to
inserted open emergency requests. The listener decides per row whether the
viewer should see a pop-up, keeps the pending alerts in memory until the
viewer dismisses them, and fires the (best-effort) sound hook. When given a
viewer_source the listener re-reads the viewer before each decision, so a
changed blood type or admin flag applies to the next alert.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from heartbeat.models.emergency_request import EmergencyStatus
from heartbeat.schemas.emergency_request import EmergencyAlertRecord
from heartbeat.services.realtime import (
    ChangeEvent, ChangeType, ChannelFilter, RealtimeHub, Subscription, realtime_hub,
)

logger = logging.getLogger(__name__)

EMERGENCY_TABLE = "emergency_requests"


@dataclass(frozen=True)
class AlertViewer:
    """What the alert filter needs to know about the connected viewer."""
    id: str
    is_admin: bool = False
    blood_type: Optional[str] = None

    @classmethod
    def from_profile(cls, profile) -> "AlertViewer":
        return cls(
            id=profile.id,
            is_admin=bool(profile.is_admin),
            blood_type=_value(profile.blood_type) if profile.blood_type else None,
        )


def _value(field):
    return getattr(field, "value", field)


def should_alert(viewer, request) -> bool:
    """
    Whether a viewer gets a pop-up for a newly created emergency request.

    ``viewer`` needs ``id``, ``is_admin`` and ``blood_type``; ``request`` needs
    ``user_id``, ``blood_type`` and ``status``. Only an exact blood type match
    or the admin role qualifies; creators never see their own request.
    """
    if str(request.user_id) == str(viewer.id):
        return False
    if _value(request.status) != EmergencyStatus.OPEN.value:
        return False
    if viewer.is_admin:
        return True
    if not viewer.blood_type:
        return False
    return _value(viewer.blood_type) == _value(request.blood_type)


def subscribe_to_new_emergencies(hub: RealtimeHub = realtime_hub) -> Subscription:
    return hub.subscribe(
        EMERGENCY_TABLE,
        ChangeType.INSERT,
        ChannelFilter("status", EmergencyStatus.OPEN.value),
    )


class EmergencyAlertListener:
    """Per-viewer alert state fed from a change subscription."""

    def __init__(self, viewer, subscription: Subscription,
                 sound_hook: Optional[Callable[[EmergencyAlertRecord], Any]] = None,
                 viewer_source: Optional[Callable[[], Optional[AlertViewer]]] = None):
        self.viewer = viewer
        self.subscription = subscription
        self.sound_hook = sound_hook
        self.viewer_source = viewer_source
        self._alerts: Dict[str, EmergencyAlertRecord] = {}

    @property
    def alerts(self) -> List[EmergencyAlertRecord]:
        return list(self._alerts.values())

    def handle(self, change: ChangeEvent) -> Optional[EmergencyAlertRecord]:
        """Process one change; returns the alert if the viewer should see it."""
        try:
            request = EmergencyAlertRecord.model_validate(change.record)
        except ValidationError as e:
            logger.warning(f"Skipping malformed {change.table} row: {e.error_count()} error(s)")
            return None

        self.refresh_viewer()
        if not should_alert(self.viewer, request):
            return None

        self._alerts[request.id] = request
        self._play_sound(request)
        return request

    def refresh_viewer(self):
        """Pick up the viewer's current profile; keeps the last one if it is gone."""
        if self.viewer_source is None:
            return self.viewer
        viewer = self.viewer_source()
        if viewer is not None:
            self.viewer = viewer
        return self.viewer

    def dismiss(self, alert_id: str) -> bool:
        """Drop an alert from local state. The stored request is untouched."""
        return self._alerts.pop(alert_id, None) is not None

    def _play_sound(self, alert: EmergencyAlertRecord) -> None:
        if self.sound_hook is None:
            return
        try:
            self.sound_hook(alert)
        except Exception as e:
            logger.info(f"Alert sound failed for {alert.id}: {e}")

    async def alerts_stream(self):
        """Yield qualifying alerts until the subscription is closed."""
        async for change in self.subscription:
            alert = self.handle(change)
            if alert is not None:
                yield alert

    def close(self) -> None:
        self.subscription.close()
