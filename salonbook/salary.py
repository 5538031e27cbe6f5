"""Salary computation from closed work-log entries."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func

from .errors import MissingParameter
from .extensions import db
from .models import StaffDetail, WorkLogEntry
from .staff import require_active_staff

logger = logging.getLogger(__name__)

PERIODS = ("day", "week", "month", "all")
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class SalaryReport:
    staff_id: int
    period: str
    minutes_worked: int
    hours_worked: Decimal
    rate_per_hour: Decimal
    total: Decimal

    def to_dict(self) -> dict[str, object]:
        return {
            "staff_id": self.staff_id,
            "period": self.period,
            "minutes_worked": self.minutes_worked,
            "hours_worked": float(self.hours_worked.quantize(CENTS, rounding=ROUND_HALF_UP)),
            "salary_per_hour": float(self.rate_per_hour),
            "calculated_salary": float(self.total),
        }


def period_window(period: str, today: date) -> tuple[datetime, datetime] | None:
    """Return the ``[start, end)`` check-in window for a period, or None for ``all``."""
    if period == "day":
        start = today
        end = today + timedelta(days=1)
    elif period == "week":
        # ISO week: Monday through Sunday.
        start = today - timedelta(days=today.weekday())
        end = start + timedelta(days=7)
    elif period == "month":
        start = today.replace(day=1)
        end = (start + timedelta(days=32)).replace(day=1)
    elif period == "all":
        return None
    else:
        raise MissingParameter("Invalid period value (day/week/month/all)")
    return datetime.combine(start, datetime.min.time()), datetime.combine(end, datetime.min.time())


def parse_period(raw: object) -> str:
    period = str(raw).strip().lower() if raw is not None else ""
    if not period:
        raise MissingParameter("Missing period value (day/week/month/all)")
    if period not in PERIODS:
        raise MissingParameter("Invalid period value (day/week/month/all)")
    return period


def compute_salary(staff_id: object, period: str, today: date) -> SalaryReport:
    """Sum worked minutes for the period and multiply by the hourly rate.

    The total is rounded half-up to cents. No entries means zero, not an error.
    """
    staff = require_active_staff(staff_id)
    window = period_window(period, today)

    query = db.session.query(func.coalesce(func.sum(WorkLogEntry.duration_minutes), 0)).filter(
        WorkLogEntry.staff_id == staff.user_id,
        WorkLogEntry.duration_minutes.isnot(None),
    )
    if window is not None:
        start, end = window
        query = query.filter(WorkLogEntry.check_in >= start, WorkLogEntry.check_in < end)
    minutes = int(query.scalar() or 0)

    detail = db.session.get(StaffDetail, staff.user_id)
    rate = Decimal(str(detail.salary_per_hour)) if detail and detail.salary_per_hour is not None else Decimal("0")

    hours = Decimal(minutes) / Decimal(60)
    total = (hours * rate).quantize(CENTS, rounding=ROUND_HALF_UP)

    logger.debug("Salary for staff %s over %s: %s minutes at %s", staff.user_id, period, minutes, rate)
    return SalaryReport(
        staff_id=staff.user_id,
        period=period,
        minutes_worked=minutes,
        hours_worked=hours,
        rate_per_hour=rate,
        total=total,
    )
