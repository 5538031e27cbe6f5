"""Staff check-in / check-out producing work-log entries."""
from __future__ import annotations

import logging
from datetime import datetime

from .errors import AlreadyCheckedIn, NotCheckedIn
from .extensions import db
from .models import WorkLogEntry
from .store import transaction

logger = logging.getLogger(__name__)


def open_entry(staff_id: int) -> WorkLogEntry | None:
    return (
        WorkLogEntry.query.filter(
            WorkLogEntry.staff_id == staff_id,
            WorkLogEntry.check_out.is_(None),
        )
        .order_by(WorkLogEntry.check_in.desc())
        .first()
    )


def check_in(staff_id: int, now: datetime) -> WorkLogEntry:
    with transaction():
        if open_entry(staff_id) is not None:
            raise AlreadyCheckedIn()
        entry = WorkLogEntry(staff_id=staff_id, check_in=now)
        db.session.add(entry)

    logger.info("Staff %s checked in at %s", staff_id, now.isoformat())
    return entry


def check_out(staff_id: int, now: datetime) -> WorkLogEntry:
    """Close the open entry; the duration is whole elapsed minutes."""
    with transaction():
        entry = open_entry(staff_id)
        if entry is None:
            raise NotCheckedIn()
        elapsed = max(0, int((now - entry.check_in).total_seconds()))
        entry.check_out = now
        entry.duration_minutes = elapsed // 60

    logger.info("Staff %s checked out after %s minutes", staff_id, entry.duration_minutes)
    return entry


def attendance_status(staff_id: int) -> WorkLogEntry | None:
    """Return the staff member's open work-log entry, or None when checked out."""
    return open_entry(staff_id)
