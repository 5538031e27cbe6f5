"""Appointment filters: named predicates compiled to bound-parameter clauses.

A caller-selected filter is first turned into an ``AppointmentFilter`` (a
kind plus its associated value) and then compiled into a fixed SQLAlchemy
predicate template. User input only ever travels as a bound parameter.
"""
from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy import Date, Integer, String, bindparam, func
from sqlalchemy.orm import aliased

from .errors import InvalidFilter, MissingFilterParameter, MissingParameter
from .models import APPOINTMENT_STATUSES, Appointment, User

# Aliases for the two joins from appointments to users.
ClientUser = aliased(User, name="client_user")
StaffUser = aliased(User, name="staff_user")


class FilterKind(enum.Enum):
    ALL = "all"
    TODAY = "today"
    UPCOMING = "upcoming"
    PAST = "past"
    STATUS = "status"
    CLIENT_NAME = "by_client_name"
    STAFF_NAME = "by_staff_name"
    SPECIFIC_DATE = "by_specific_date"
    # Used by the client and staff views, not selectable by name.
    CLIENT = "client"
    STAFF = "staff"
    DATE_RANGE = "date_range"


@dataclass(frozen=True)
class AppointmentFilter:
    kind: FilterKind
    value: object = None


@dataclass
class CompiledFilter:
    clauses: list = field(default_factory=list)
    params: list = field(default_factory=list)
    types: list[str] = field(default_factory=list)

    def add(self, clause, value, type_tag: str) -> None:
        self.clauses.append(clause)
        self.params.append(value)
        self.types.append(type_tag)


# Filters that need an extra request parameter, and its name.
REQUIRED_PARAMETERS = {
    FilterKind.CLIENT_NAME: "client_name",
    FilterKind.STAFF_NAME: "staff_name",
    FilterKind.SPECIFIC_DATE: "date",
}

_NAMED_KINDS = {
    kind.value: kind
    for kind in (
        FilterKind.ALL,
        FilterKind.TODAY,
        FilterKind.UPCOMING,
        FilterKind.PAST,
        FilterKind.CLIENT_NAME,
        FilterKind.STAFF_NAME,
        FilterKind.SPECIFIC_DATE,
    )
}


def parse_iso_date(value: object, field_name: str = "date") -> date:
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise MissingParameter(f"Invalid {field_name}: expected YYYY-MM-DD") from None


def _param(raw_params: Mapping, name: str) -> str | None:
    value = raw_params.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def build_filter(name: object, raw_params: Mapping) -> AppointmentFilter:
    """Turn a requested filter name and raw parameters into a filter variant.

    An absent or empty name means ``all``. Unknown names raise
    ``InvalidFilter``; a filter whose extra parameter is missing or empty
    raises ``MissingFilterParameter`` instead of falling back to ``all``.
    """
    filter_name = str(name).strip().lower() if name is not None else ""
    if not filter_name:
        return AppointmentFilter(FilterKind.ALL)

    if filter_name in APPOINTMENT_STATUSES:
        return AppointmentFilter(FilterKind.STATUS, filter_name)

    kind = _NAMED_KINDS.get(filter_name)
    if kind is None:
        raise InvalidFilter(f"Invalid filter: {filter_name}")

    param_name = REQUIRED_PARAMETERS.get(kind)
    if param_name is None:
        return AppointmentFilter(kind)

    value = _param(raw_params, param_name)
    if value is None:
        raise MissingFilterParameter(f"Missing {param_name} for this filter.")

    if kind is FilterKind.SPECIFIC_DATE:
        return AppointmentFilter(kind, parse_iso_date(value, param_name))
    return AppointmentFilter(kind, value)


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def compile_filter(filters: AppointmentFilter | Iterable[AppointmentFilter], today: date) -> CompiledFilter:
    """Compile filters into clauses to be combined with AND.

    Name filters assume the query joins ``ClientUser`` and ``StaffUser``.
    """
    if isinstance(filters, AppointmentFilter):
        filters = [filters]

    compiled = CompiledFilter()
    for flt in filters:
        kind = flt.kind
        if kind is FilterKind.ALL:
            continue
        if kind is FilterKind.TODAY:
            compiled.add(Appointment.date == bindparam("today", today, type_=Date), today, "date")
        elif kind is FilterKind.UPCOMING:
            compiled.add(Appointment.date > bindparam("today", today, type_=Date), today, "date")
        elif kind is FilterKind.PAST:
            compiled.add(Appointment.date < bindparam("today", today, type_=Date), today, "date")
        elif kind is FilterKind.STATUS:
            status = str(flt.value).lower()
            compiled.add(
                func.lower(Appointment.status) == bindparam("status", status, type_=String),
                status,
                "str",
            )
        elif kind is FilterKind.CLIENT_NAME:
            pattern = _like_pattern(str(flt.value))
            compiled.add(
                ClientUser.full_name.ilike(bindparam("client_name", pattern, type_=String), escape="\\"),
                pattern,
                "str",
            )
        elif kind is FilterKind.STAFF_NAME:
            pattern = _like_pattern(str(flt.value))
            compiled.add(
                StaffUser.full_name.ilike(bindparam("staff_name", pattern, type_=String), escape="\\"),
                pattern,
                "str",
            )
        elif kind is FilterKind.SPECIFIC_DATE:
            compiled.add(
                Appointment.date == bindparam("specific_date", flt.value, type_=Date),
                flt.value,
                "date",
            )
        elif kind is FilterKind.CLIENT:
            compiled.add(
                Appointment.client_id == bindparam("client_id", flt.value, type_=Integer),
                flt.value,
                "int",
            )
        elif kind is FilterKind.STAFF:
            compiled.add(
                Appointment.staff_id == bindparam("staff_id", flt.value, type_=Integer),
                flt.value,
                "int",
            )
        elif kind is FilterKind.DATE_RANGE:
            date_from, date_to = flt.value
            if date_from is not None:
                compiled.add(
                    Appointment.date >= bindparam("date_from", date_from, type_=Date),
                    date_from,
                    "date",
                )
            if date_to is not None:
                compiled.add(
                    Appointment.date <= bindparam("date_to", date_to, type_=Date),
                    date_to,
                    "date",
                )
    return compiled


def schedule_filters(staff_id: int, mode: str | None, date_from, date_to) -> list[AppointmentFilter]:
    """Filters for a staff schedule: ``mode=today`` wins over a date range."""
    filters = [AppointmentFilter(FilterKind.STAFF, staff_id)]
    if mode == "today":
        filters.append(AppointmentFilter(FilterKind.TODAY))
    elif mode:
        raise InvalidFilter(f"Invalid mode: {mode}")
    elif date_from and date_to:
        filters.append(
            AppointmentFilter(
                FilterKind.DATE_RANGE,
                (parse_iso_date(date_from, "date_from"), parse_iso_date(date_to, "date_to")),
            )
        )
    elif date_from or date_to:
        raise MissingParameter("Both date_from and date_to are required for a date range")
    return filters


def client_filters(client_id: int, status: object, date_from, date_to) -> list[AppointmentFilter]:
    """Filters for a client's own appointment list; either range end may be open."""
    filters = [AppointmentFilter(FilterKind.CLIENT, client_id)]
    status = str(status).strip().lower() if status is not None else ""
    if status and status != "all":
        if status not in APPOINTMENT_STATUSES:
            raise InvalidFilter(f"Invalid status: {status}")
        filters.append(AppointmentFilter(FilterKind.STATUS, status))
    if date_from or date_to:
        filters.append(
            AppointmentFilter(
                FilterKind.DATE_RANGE,
                (
                    parse_iso_date(date_from, "date_from") if date_from else None,
                    parse_iso_date(date_to, "date_to") if date_to else None,
                ),
            )
        )
    return filters
