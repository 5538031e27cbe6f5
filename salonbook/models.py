"""Database models for the SalonBook backend."""
from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from flask import current_app

from .extensions import db

USER_ROLES = ("client", "staff", "admin")
APPOINTMENT_STATUSES = ("pending", "confirmed", "completed", "cancelled")


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    """Return the naive wall-clock time of the salon's configured timezone."""
    tz = ZoneInfo(current_app.config.get("SALON_TIMEZONE", "UTC"))
    return datetime.now(tz).replace(tzinfo=None)


class User(db.Model):
    __tablename__ = "users"

    user_id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    phone = db.Column(db.String(30))
    dob = db.Column(db.Date)
    role = db.Column(
        db.Enum(
            *USER_ROLES,
            name="user_role",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default="client",
    )
    is_active = db.Column(db.Boolean, nullable=False, default=True, server_default="1")
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    staff_detail = db.relationship("StaffDetail", back_populates="user", uselist=False)

    def to_dict_basic(self) -> dict[str, object]:
        return {
            "id": self.user_id,
            "user_id": self.user_id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role,
            "phone": self.phone,
        }


class StaffDetail(db.Model):
    """Employment details of a staff user."""

    __tablename__ = "staff_details"

    staff_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), primary_key=True)
    salary_per_hour = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    notes = db.Column(db.Text)
    date_registered = db.Column(db.Date, nullable=False, default=lambda: local_now().date())

    user = db.relationship("User", back_populates="staff_detail")

    def to_dict(self) -> dict[str, object]:
        user = self.user
        return {
            "staff_id": self.staff_id,
            "full_name": user.full_name if user else None,
            "email": user.email if user else None,
            "phone": user.phone if user else None,
            "dob": user.dob.isoformat() if user and user.dob else None,
            "salary_per_hour": float(self.salary_per_hour or 0),
            "notes": self.notes,
            "date_registered": self.date_registered.isoformat() if self.date_registered else None,
            "is_active": bool(user.is_active) if user else False,
        }


class Service(db.Model):
    """Services offered by the salon."""

    __tablename__ = "services"

    service_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.service_id,
            "name": self.name,
            "price": float(self.price),
        }


class Appointment(db.Model):
    """Client appointments. Cancellation is a status change, never a delete."""

    __tablename__ = "appointments"

    appointment_id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    staff_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.service_id"), nullable=False)
    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.Time, nullable=False)
    # Snapshot of the service price at booking (or edit) time.
    price = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(
        db.Enum(
            *APPOINTMENT_STATUSES,
            name="appointment_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        default="pending",
        server_default="pending",
    )
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    client = db.relationship("User", foreign_keys=[client_id])
    staff = db.relationship("User", foreign_keys=[staff_id])
    service = db.relationship("Service")

    def to_dict(self) -> dict[str, object]:
        return {
            "appointment_id": self.appointment_id,
            "client_id": self.client_id,
            "client_name": self.client.full_name if self.client else None,
            "staff_id": self.staff_id,
            "staff_name": self.staff.full_name if self.staff else None,
            "service_id": self.service_id,
            "service_name": self.service.name if self.service else None,
            "price": float(self.price),
            "date": self.date.isoformat() if self.date else None,
            "time": self.time.strftime("%H:%M:%S") if self.time else None,
            "status": self.status,
            "notes": self.notes,
        }


class Feedback(db.Model):
    """Client rating and comment left on an appointment."""

    __tablename__ = "feedback"

    feedback_id = db.Column(db.Integer, primary_key=True)
    appointment_id = db.Column(db.Integer, db.ForeignKey("appointments.appointment_id"), nullable=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    rating = db.Column(db.Integer, nullable=False)  # 1-5 stars
    comment = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    client = db.relationship("User")
    appointment = db.relationship("Appointment")

    def to_dict(self) -> dict[str, object]:
        appointment = self.appointment
        service = appointment.service if appointment else None
        return {
            "feedback_id": self.feedback_id,
            "appointment_id": self.appointment_id,
            "client_id": self.client_id,
            "client_name": self.client.full_name if self.client else "Anonymous",
            "service_name": service.name if service else None,
            "rating": self.rating,
            "comment": self.comment,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class WorkLogEntry(db.Model):
    """One check-in/check-out pair of a staff member."""

    __tablename__ = "work_log"

    log_id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    check_in = db.Column(db.DateTime, nullable=False)
    check_out = db.Column(db.DateTime, nullable=True)
    duration_minutes = db.Column(db.Integer, nullable=True)

    staff = db.relationship("User")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.log_id,
            "staff_id": self.staff_id,
            "check_in": self.check_in.isoformat() if self.check_in else None,
            "check_out": self.check_out.isoformat() if self.check_out else None,
            "duration_minutes": self.duration_minutes,
        }


class Notification(db.Model):
    """Outbox of lifecycle events addressed to a user."""

    __tablename__ = "notifications"

    notification_id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False)
    appointment_id = db.Column(db.Integer, db.ForeignKey("appointments.appointment_id"), nullable=True)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    notification_type = db.Column(
        db.Enum(
            "appointment_cancelled",
            "appointment_status_changed",
            "appointment_updated",
            "staff_assigned",
            name="notification_type",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
    )
    payload = db.Column(db.JSON, nullable=True, default=dict)
    is_read = db.Column(db.Boolean, nullable=False, default=False, server_default="0")
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    user = db.relationship("User")
    appointment = db.relationship("Appointment")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.notification_id,
            "user_id": self.user_id,
            "appointment_id": self.appointment_id,
            "title": self.title,
            "message": self.message,
            "notification_type": self.notification_type,
            "payload": self.payload or {},
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
