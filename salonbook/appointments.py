"""Read path for appointment listings (admin, client and staff views)."""
from __future__ import annotations

from datetime import date

from sqlalchemy import func

from .extensions import db
from .filters import (AppointmentFilter, ClientUser, CompiledFilter, StaffUser,
                      compile_filter)
from .models import Appointment, Service
from .pagination import Page, paginate


def _listing_query(*columns):
    # Unassigned appointments have no staff row, hence the outer join.
    return (
        db.session.query(*columns)
        .select_from(Appointment)
        .join(ClientUser, Appointment.client_id == ClientUser.user_id)
        .outerjoin(StaffUser, Appointment.staff_id == StaffUser.user_id)
        .join(Service, Appointment.service_id == Service.service_id)
    )


_ROW_COLUMNS = (
    Appointment.appointment_id.label("appointment_id"),
    ClientUser.full_name.label("client_name"),
    StaffUser.full_name.label("staff_name"),
    Service.name.label("service_name"),
    Appointment.price.label("price"),
    Appointment.date.label("date"),
    Appointment.time.label("time"),
    Appointment.status.label("status"),
)


def _row_to_dict(row) -> dict[str, object]:
    data = dict(row._mapping)
    data["price"] = float(data["price"]) if data["price"] is not None else None
    data["date"] = data["date"].isoformat() if data["date"] else None
    data["time"] = data["time"].strftime("%H:%M:%S") if data["time"] else None
    return data


def count_appointments(compiled: CompiledFilter) -> int:
    """Count rows matching the same predicates the data query uses."""
    return (
        _listing_query(func.count(Appointment.appointment_id))
        .filter(*compiled.clauses)
        .scalar()
        or 0
    )


def fetch_appointments(
    compiled: CompiledFilter,
    descending: bool = False,
    limit: int | None = None,
    offset: int = 0,
) -> list[dict[str, object]]:
    if descending:
        ordering = (Appointment.date.desc(), Appointment.time.desc(), Appointment.appointment_id.desc())
    else:
        ordering = (Appointment.date, Appointment.time, Appointment.appointment_id)

    query = _listing_query(*_ROW_COLUMNS).filter(*compiled.clauses).order_by(*ordering)
    if limit is not None:
        query = query.limit(limit).offset(offset)
    return [_row_to_dict(row) for row in query.all()]


def list_appointments(
    filters: AppointmentFilter | list[AppointmentFilter],
    page: int,
    page_size: int,
    today: date,
    descending: bool = False,
) -> tuple[list[dict[str, object]], Page]:
    """Return one page of matching appointments plus the page arithmetic.

    A page beyond the last one yields an empty list, not an error.
    """
    compiled = compile_filter(filters, today)
    page_info = paginate(page, page_size, count_appointments(compiled))
    rows = fetch_appointments(
        compiled,
        descending=descending,
        limit=page_info.page_size,
        offset=page_info.offset,
    )
    return rows, page_info


def staff_schedule(filters: list[AppointmentFilter], today: date) -> list[dict[str, object]]:
    return fetch_appointments(compile_filter(filters, today))
