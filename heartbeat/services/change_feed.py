"""
Publishes committed ORM changes to the realtime hub.

Rows touched during a flush are snapshotted in ``after_flush`` and only
published once the transaction commits; a rollback discards them. Bulk
``Query.update`` statements bypass the ORM and are not published.
"""
import enum
import logging
from datetime import date, datetime

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from heartbeat.services.realtime import ChangeEvent, ChangeType, realtime_hub

logger = logging.getLogger(__name__)

TRACKED_TABLES = frozenset({
    "profiles",
    "blood_donations",
    "emergency_requests",
    "rewards",
    "reward_transactions",
    "chat_rooms",
    "chat_participants",
    "chat_messages",
})

_PENDING_KEY = "heartbeat.pending_changes"


def _jsonable(value):
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def serialize_row(obj) -> dict:
    mapper = inspect(obj).mapper
    return {attr.key: _jsonable(getattr(obj, attr.key)) for attr in mapper.column_attrs}


def _table_name(obj):
    return getattr(obj, "__tablename__", None)


def _collect_changes(session, flush_context):
    pending = session.info.setdefault(_PENDING_KEY, [])
    for obj in session.new:
        table = _table_name(obj)
        if table in TRACKED_TABLES:
            pending.append(ChangeEvent(table, ChangeType.INSERT, serialize_row(obj)))
    for obj in session.dirty:
        table = _table_name(obj)
        if table in TRACKED_TABLES and session.is_modified(obj, include_collections=False):
            pending.append(ChangeEvent(table, ChangeType.UPDATE, serialize_row(obj)))


def _publish_changes(session):
    changes = session.info.pop(_PENDING_KEY, [])
    for change in changes:
        realtime_hub.publish(change)
    if changes:
        logger.debug(f"Published {len(changes)} change event(s)")


def _discard_changes(session):
    session.info.pop(_PENDING_KEY, None)


def install() -> None:
    """Attach the listeners to every ORM session. Safe to call more than once."""
    if event.contains(Session, "after_flush", _collect_changes):
        return
    event.listen(Session, "after_flush", _collect_changes)
    event.listen(Session, "after_commit", _publish_changes)
    event.listen(Session, "after_rollback", _discard_changes)
    logger.info("Realtime change feed installed")
