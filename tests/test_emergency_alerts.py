"""Unit tests for who sees an emergency alert, and the per-viewer listener."""
import asyncio
from types import SimpleNamespace

from heartbeat.services.emergency_alerts import (
    AlertViewer,
    EmergencyAlertListener,
    should_alert,
    subscribe_to_new_emergencies,
)
from heartbeat.services.realtime import ChangeEvent, ChangeType, RealtimeHub


def make_request(**overrides):
    record = {
        "id": "req-1",
        "user_id": "creator",
        "blood_type": "O+",
        "units_needed": 2,
        "hospital": "City Hospital",
        "patient_name": "Pat",
        "urgency_level": "high",
        "status": "open",
        "created_at": "2026-10-19T10:00:00+00:00",
    }
    record.update(overrides)
    return record


def test_matching_blood_type_alerts():
    viewer = AlertViewer(id="viewer", blood_type="O+")
    assert should_alert(viewer, SimpleNamespace(**make_request()))


def test_other_blood_type_does_not_alert():
    viewer = AlertViewer(id="viewer", blood_type="A+")
    assert not should_alert(viewer, SimpleNamespace(**make_request()))


def test_compatible_but_different_type_does_not_alert():
    # O- can give to O+, but alerts only go to the exact type
    viewer = AlertViewer(id="viewer", blood_type="O-")
    assert not should_alert(viewer, SimpleNamespace(**make_request()))


def test_admin_alerted_for_any_type():
    viewer = AlertViewer(id="viewer", is_admin=True)
    assert should_alert(viewer, SimpleNamespace(**make_request(blood_type="AB-")))


def test_creator_never_alerted():
    viewer = AlertViewer(id="creator", is_admin=True, blood_type="O+")
    assert not should_alert(viewer, SimpleNamespace(**make_request()))


def test_viewer_without_blood_type_not_alerted():
    viewer = AlertViewer(id="viewer")
    assert not should_alert(viewer, SimpleNamespace(**make_request()))


def test_closed_request_not_alerted():
    viewer = AlertViewer(id="viewer", is_admin=True)
    assert not should_alert(viewer, SimpleNamespace(**make_request(status="closed")))


def test_viewer_from_profile():
    profile = SimpleNamespace(id="p1", is_admin=None, blood_type=None)
    assert AlertViewer.from_profile(profile) == AlertViewer(id="p1", is_admin=False, blood_type=None)


def test_listener_collects_and_dismisses():
    sounds = []
    viewer = AlertViewer(id="viewer", blood_type="O+")
    listener = EmergencyAlertListener(viewer, subscription=None, sound_hook=sounds.append)

    alert = listener.handle(ChangeEvent("emergency_requests", ChangeType.INSERT, make_request()))
    assert alert is not None and alert.id == "req-1"
    assert listener.handle(ChangeEvent("emergency_requests", ChangeType.INSERT, make_request(id="req-2", blood_type="B+"))) is None
    assert [a.id for a in listener.alerts] == ["req-1"]
    assert [s.id for s in sounds] == ["req-1"]

    assert listener.dismiss("req-1")
    assert not listener.dismiss("req-1")
    assert listener.alerts == []


def test_listener_skips_malformed_rows():
    listener = EmergencyAlertListener(AlertViewer(id="viewer", is_admin=True), subscription=None)
    assert listener.handle(ChangeEvent("emergency_requests", ChangeType.INSERT, {"id": "x"})) is None
    assert listener.alerts == []


def test_sound_failure_does_not_block_alert():
    def broken_sound(alert):
        raise OSError("no audio device")

    listener = EmergencyAlertListener(AlertViewer(id="viewer", is_admin=True), subscription=None,
                                      sound_hook=broken_sound)
    assert listener.handle(ChangeEvent("emergency_requests", ChangeType.INSERT, make_request())) is not None
    assert len(listener.alerts) == 1


def test_alert_stream_filters_subscription():
    async def scenario():
        hub = RealtimeHub()
        listener = EmergencyAlertListener(AlertViewer(id="viewer", blood_type="O+"), subscribe_to_new_emergencies(hub))

        hub.publish(ChangeEvent("emergency_requests", ChangeType.INSERT, make_request(id="a", blood_type="B+")))
        hub.publish(ChangeEvent("emergency_requests", ChangeType.INSERT, make_request(id="b", status="closed")))
        hub.publish(ChangeEvent("emergency_requests", ChangeType.UPDATE, make_request(id="c")))
        hub.publish(ChangeEvent("emergency_requests", ChangeType.INSERT, make_request(id="d")))

        stream = listener.alerts_stream()
        alert = await asyncio.wait_for(stream.__anext__(), 1)
        assert alert.id == "d"
        listener.close()
        assert hub.subscription_count() == 0

    asyncio.run(scenario())


def test_o_negative_donor_only_hears_o_negative():
    viewer = AlertViewer(id="viewer", is_admin=False, blood_type="O-")
    assert not should_alert(viewer, SimpleNamespace(**make_request(blood_type="A+")))
    assert should_alert(viewer, SimpleNamespace(**make_request(blood_type="O-")))


def test_listener_rereads_viewer_before_each_alert():
    viewers = [AlertViewer(id="viewer", blood_type="A-"), None]
    listener = EmergencyAlertListener(AlertViewer(id="viewer", blood_type="O+"), subscription=None,
                                      viewer_source=lambda: viewers[0])

    # The viewer changed to A- after connecting
    assert listener.handle(ChangeEvent("emergency_requests", ChangeType.INSERT, make_request(id="o"))) is None
    alert = listener.handle(ChangeEvent("emergency_requests", ChangeType.INSERT,
                                        make_request(id="a", blood_type="A-")))
    assert alert is not None and alert.id == "a"

    # A missing profile keeps the last known viewer
    viewers[0] = None
    assert listener.refresh_viewer() == AlertViewer(id="viewer", blood_type="A-")
