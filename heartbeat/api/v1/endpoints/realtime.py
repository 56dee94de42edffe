"""
WebSocket channels backed by the realtime hub.

Clients pass their access token as ``?token=``. Each socket subscribes before
it accepts, so nothing committed after the handshake is missed.
"""
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Optional
import asyncio
import logging
from heartbeat.core.config import settings
from heartbeat.database.database import get_db
from heartbeat.models.profile import Profile
from heartbeat.schemas.donation import DonationResponse
from heartbeat.services import auth_service
from heartbeat.services.auth_service import AuthError
from heartbeat.services.emergency_alerts import (
    AlertViewer,
    EmergencyAlertListener,
    subscribe_to_new_emergencies,
)
from heartbeat.services.realtime import ChangeType, ChannelFilter, realtime_hub
from heartbeat.services.session_context import SessionContext

logger = logging.getLogger(__name__)
router = APIRouter()


async def authenticate_websocket(websocket: WebSocket, db: Session) -> Optional[SessionContext]:
    """Resolve ``?token=``; closes the socket with a policy violation when unusable."""
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None
    try:
        context = auth_service.resolve_session(db, token)
    except AuthError as e:
        logger.info(f"Rejected websocket {websocket.url.path}: {e}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None
    if context.profile is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None
    return context


async def run_socket(*coros) -> None:
    """Run the socket's loops until the first one ends, then cancel the rest."""
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
    for task in pending:
        try:
            await task
        except (asyncio.CancelledError, WebSocketDisconnect):
            pass
    for task in done:
        exc = task.exception()
        if exc is not None and not isinstance(exc, WebSocketDisconnect):
            raise exc


@router.websocket("/emergency-alerts")
async def emergency_alerts_socket(websocket: WebSocket, db: Session = Depends(get_db)):
    """
    Pop-up alerts for newly opened emergency requests.

    Server messages: ``{"type": "emergency_alert", "alert": {...}, "sound_url": ...}``.
    Client messages: ``{"action": "dismiss", "id": ...}``.
    """
    context = await authenticate_websocket(websocket, db)
    if context is None:
        return

    viewer = AlertViewer.from_profile(context.profile)

    def load_viewer() -> Optional[AlertViewer]:
        try:
            profile = db.query(Profile).filter(Profile.id == viewer.id).populate_existing().first()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Could not reload profile {viewer.id} for alerts: {e}")
            return None
        return AlertViewer.from_profile(profile) if profile is not None else None

    listener = EmergencyAlertListener(
        viewer,
        subscribe_to_new_emergencies(realtime_hub),
        viewer_source=load_viewer,
    )
    await websocket.accept()
    logger.info(f"Emergency alert channel opened for {viewer.id}")

    async def forward():
        async for alert in listener.alerts_stream():
            await websocket.send_json({
                "type": "emergency_alert",
                "alert": alert.model_dump(mode="json"),
                "sound_url": settings.ALERT_SOUND_URL,
            })

    async def receive():
        while True:
            data = await websocket.receive_json()
            if isinstance(data, dict) and data.get("action") == "dismiss":
                dismissed = listener.dismiss(str(data.get("id")))
                await websocket.send_json({"type": "dismissed", "id": data.get("id"), "found": dismissed})

    try:
        await run_socket(forward(), receive())
    finally:
        listener.close()
        logger.info(f"Emergency alert channel closed for {viewer.id}")


@router.websocket("/donations")
async def donations_socket(websocket: WebSocket, db: Session = Depends(get_db)):
    """Live inserts and status changes of the caller's own donations."""
    context = await authenticate_websocket(websocket, db)
    if context is None:
        return

    subscription = realtime_hub.subscribe(
        "blood_donations",
        ChangeType.ALL,
        ChannelFilter("user_id", context.user_id),
    )
    await websocket.accept()

    async def forward():
        async for change in subscription:
            try:
                donation = DonationResponse.model_validate(change.record)
            except ValidationError as e:
                logger.warning(f"Skipping malformed blood_donations row: {e.error_count()} error(s)")
                continue
            await websocket.send_json({
                "type": change.type.value,
                "donation": donation.model_dump(mode="json"),
            })

    async def receive():
        # Nothing is expected from the client; this only notices the disconnect
        while True:
            await websocket.receive_text()

    try:
        await run_socket(forward(), receive())
    finally:
        subscription.close()
