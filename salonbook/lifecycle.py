"""Appointment state machine and the guarded writes that drive it.

    pending -> confirmed -> completed
    pending | confirmed -> cancelled

``completed`` and ``cancelled`` are terminal. Every mutation is a single
``UPDATE ... WHERE appointment_id = ? AND <guard>``; an affected-row count of
zero is what rejects the change. The read that follows a rejected update only
decides which error to report.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy import update

from .auth import ADMIN, STAFF
from .errors import (AlreadyFinalized, InvalidTransition, MissingParameter,
                     NotFound, Unauthorized)
from .extensions import db
from .filters import parse_iso_date
from .models import Appointment, Service, User
from .notifications import LifecycleEvent
from .staff import require_active_staff
from .store import transaction

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("pending", "confirmed")
TERMINAL_STATUSES = ("completed", "cancelled")

# Target status -> statuses it may be reached from.
TRANSITIONS = {
    "confirmed": ("pending",),
    "completed": ("confirmed",),
    "cancelled": ("pending", "confirmed"),
}

STATUS_TITLES = {
    "confirmed": "Appointment Confirmed",
    "completed": "Appointment Completed",
    "cancelled": "Appointment Cancelled",
}


@dataclass(frozen=True)
class CancelledSnapshot:
    """State of an appointment read just before it was cancelled."""

    appointment_id: int
    client_id: int
    service_name: str
    date: date
    time: time

    def to_payload(self) -> dict[str, object]:
        return {
            "service_name": self.service_name,
            "date": self.date.isoformat(),
            "time": self.time.strftime("%H:%M:%S"),
            "status": "cancelled",
        }

    def to_event(self) -> LifecycleEvent:
        return LifecycleEvent(
            event_type="appointment_cancelled",
            user_id=self.client_id,
            appointment_id=self.appointment_id,
            title="Appointment Cancelled",
            message=(
                f"Your {self.service_name} appointment on {self.date.isoformat()} "
                f"at {self.time.strftime('%H:%M')} has been cancelled."
            ),
            payload=self.to_payload(),
        )


def can_transition(current: str, target: str) -> bool:
    return current in TRANSITIONS.get(target, ())


def _guarded_update(criteria: list, values: dict) -> int:
    result = db.session.execute(
        update(Appointment)
        .where(*criteria)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def parse_time(value: object) -> time:
    if isinstance(value, time):
        return value
    text = str(value).strip()
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise MissingParameter("Invalid time: expected HH:MM")


def cancel(appointment_id: int, client_id: int) -> CancelledSnapshot:
    """Cancel a client's own pending or confirmed appointment."""
    with transaction():
        row = (
            db.session.query(Service.name, Appointment.date, Appointment.time)
            .join(Service, Appointment.service_id == Service.service_id)
            .filter(
                Appointment.appointment_id == appointment_id,
                Appointment.client_id == client_id,
            )
            .first()
        )
        if row is None:
            raise NotFound()

        affected = _guarded_update(
            [
                Appointment.appointment_id == appointment_id,
                Appointment.client_id == client_id,
                Appointment.status.in_(ACTIVE_STATUSES),
            ],
            {"status": "cancelled"},
        )
        if affected == 0:
            raise AlreadyFinalized("Cannot cancel this appointment")

    logger.info("Client %s cancelled appointment %s", client_id, appointment_id)
    return CancelledSnapshot(
        appointment_id=appointment_id,
        client_id=client_id,
        service_name=row.name,
        date=row.date,
        time=row.time,
    )


def assign_staff(appointment_id: int, staff_id: int) -> tuple[Appointment, LifecycleEvent]:
    """Point an appointment at a staff member. The status is left alone.

    There is no check against the staff member's existing bookings.
    """
    with transaction():
        staff = require_active_staff(staff_id)
        affected = _guarded_update(
            [Appointment.appointment_id == appointment_id],
            {"staff_id": staff.user_id},
        )
        if affected == 0:
            raise NotFound()

    appointment = db.session.get(Appointment, appointment_id)
    logger.info("Assigned staff %s to appointment %s", staff_id, appointment_id)
    event = LifecycleEvent(
        event_type="staff_assigned",
        user_id=appointment.client_id,
        appointment_id=appointment_id,
        title="Stylist Assigned",
        message=f"{staff.full_name} will take care of your appointment.",
        payload={"staff_id": staff.user_id, "staff_name": staff.full_name},
    )
    return appointment, event


def update_status(
    appointment_id: int,
    new_status: str | None,
    actor: User,
    notes: str | None = None,
) -> tuple[Appointment, LifecycleEvent]:
    """Move an appointment forward. Admins may act on any row, staff on their own."""
    target = str(new_status).strip().lower() if new_status is not None else ""
    if not target:
        raise MissingParameter("Missing status")

    sources = TRANSITIONS.get(target)
    if sources is None:
        raise InvalidTransition(f"Cannot move an appointment to '{target}'")

    criteria = [
        Appointment.appointment_id == appointment_id,
        Appointment.status.in_(sources),
    ]
    if actor.role == STAFF:
        criteria.append(Appointment.staff_id == actor.user_id)
    elif actor.role != ADMIN:
        raise Unauthorized()

    values: dict[str, object] = {"status": target}
    if notes is not None:
        values["notes"] = notes

    with transaction():
        affected = _guarded_update(criteria, values)
        if affected == 0:
            current = (
                db.session.query(Appointment.status, Appointment.staff_id)
                .filter(Appointment.appointment_id == appointment_id)
                .first()
            )
            if current is None or (actor.role == STAFF and current.staff_id != actor.user_id):
                raise NotFound()
            if current.status in TERMINAL_STATUSES:
                raise InvalidTransition(f"Cannot change status of a {current.status} appointment")
            raise InvalidTransition(f"Cannot move a {current.status} appointment to {target}")

    appointment = db.session.get(Appointment, appointment_id)
    logger.info(
        "User %s (%s) set appointment %s to %s",
        actor.user_id,
        actor.role,
        appointment_id,
        target,
    )
    service_name = appointment.service.name if appointment.service else "service"
    event = LifecycleEvent(
        event_type="appointment_status_changed",
        user_id=appointment.client_id,
        appointment_id=appointment_id,
        title=STATUS_TITLES[target],
        message=f"Your {service_name} appointment on {appointment.date.isoformat()} is now {target}.",
        payload={
            "service_name": service_name,
            "date": appointment.date.isoformat(),
            "time": appointment.time.strftime("%H:%M:%S"),
            "status": target,
        },
    )
    return appointment, event


def edit(
    appointment_id: int,
    client_id: int,
    service_id: object,
    new_date: object,
    new_time: object,
) -> tuple[Appointment, LifecycleEvent | None]:
    """Rewrite the service, date and time of a client's active appointment.

    The price snapshot follows the new service; the status is unchanged.
    """
    if service_id in (None, "") or new_date in (None, "") or new_time in (None, ""):
        raise MissingParameter("service_id, date and time are required")

    try:
        service_key = int(service_id)
    except (TypeError, ValueError):
        raise MissingParameter("Invalid service_id") from None
    appointment_date = parse_iso_date(new_date, "date")
    appointment_time = parse_time(new_time)

    with transaction():
        service = db.session.get(Service, service_key)
        if service is None:
            raise NotFound("Service not found")

        affected = _guarded_update(
            [
                Appointment.appointment_id == appointment_id,
                Appointment.client_id == client_id,
                Appointment.status.in_(ACTIVE_STATUSES),
            ],
            {
                "service_id": service.service_id,
                "date": appointment_date,
                "time": appointment_time,
                "price": service.price,
            },
        )
        if affected == 0:
            exists = (
                db.session.query(Appointment.appointment_id)
                .filter(
                    Appointment.appointment_id == appointment_id,
                    Appointment.client_id == client_id,
                )
                .first()
            )
            if exists is None:
                raise NotFound()
            raise AlreadyFinalized("Cannot edit this appointment")

    appointment = db.session.get(Appointment, appointment_id)
    logger.info("Client %s edited appointment %s", client_id, appointment_id)

    if appointment.staff_id is None:
        return appointment, None
    return appointment, LifecycleEvent(
        event_type="appointment_updated",
        user_id=appointment.staff_id,
        appointment_id=appointment_id,
        title="Appointment Updated",
        message=(
            f"An appointment was moved to {appointment_date.isoformat()} "
            f"at {appointment_time.strftime('%H:%M')} ({service.name})."
        ),
        payload={
            "service_name": service.name,
            "date": appointment_date.isoformat(),
            "time": appointment_time.strftime("%H:%M:%S"),
        },
    )
