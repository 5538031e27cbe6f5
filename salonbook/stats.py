"""Aggregate statistics for the admin dashboard."""
from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import func

from .extensions import db
from .models import Appointment, Service, User


def _count_appointments(*criteria) -> int:
    return db.session.query(func.count(Appointment.appointment_id)).filter(*criteria).scalar() or 0


def dashboard_stats(today: date, top_limit: int = 5) -> dict[str, object]:
    week_start = today - timedelta(days=today.weekday())
    week_end = week_start + timedelta(days=6)
    month_start = today.replace(day=1)
    month_end = (month_start + timedelta(days=32)).replace(day=1) - timedelta(days=1)

    status_counts = dict(
        db.session.query(Appointment.status, func.count(Appointment.appointment_id))
        .group_by(Appointment.status)
        .all()
    )

    month_revenue = (
        db.session.query(func.coalesce(func.sum(Appointment.price), 0))
        .filter(
            Appointment.status == "completed",
            Appointment.date.between(month_start, month_end),
        )
        .scalar()
    )

    top_services = (
        db.session.query(Service.name, func.count(Appointment.appointment_id).label("bookings"))
        .join(Appointment, Appointment.service_id == Service.service_id)
        .group_by(Service.service_id, Service.name)
        .order_by(func.count(Appointment.appointment_id).desc(), Service.name)
        .limit(top_limit)
        .all()
    )

    return {
        "total_clients": db.session.query(func.count(User.user_id)).filter(User.role == "client").scalar() or 0,
        "total_staff": db.session.query(func.count(User.user_id))
        .filter(User.role == "staff", User.is_active.is_(True))
        .scalar()
        or 0,
        "total_appointments": sum(status_counts.values()),
        "today_appointments": _count_appointments(Appointment.date == today),
        "week_appointments": _count_appointments(Appointment.date.between(week_start, week_end)),
        "pending_appointments": status_counts.get("pending", 0),
        "confirmed_appointments": status_counts.get("confirmed", 0),
        "completed_appointments": status_counts.get("completed", 0),
        "cancelled_appointments": status_counts.get("cancelled", 0),
        "month_revenue": float(month_revenue or 0),
        "top_services": [{"name": name, "bookings": bookings} for name, bookings in top_services],
    }
