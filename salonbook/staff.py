"""Staff directory: lookups, paginated listing and patch-style detail updates."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation

from sqlalchemy import func

from .errors import MissingParameter, StaffNotFound
from .extensions import db
from .filters import parse_iso_date
from .models import StaffDetail, User
from .pagination import Page, paginate
from .store import transaction

logger = logging.getLogger(__name__)


class _Unset:
    """Marker for a field the caller did not send (distinct from ``""``)."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


def require_active_staff(staff_id: object) -> User:
    try:
        key = int(staff_id)
    except (TypeError, ValueError):
        raise StaffNotFound() from None

    user = db.session.get(User, key)
    if user is None or user.role != "staff" or not user.is_active:
        raise StaffNotFound()
    return user


def list_staff(page: int, limit: int) -> tuple[list[dict[str, object]], Page]:
    base = (
        db.session.query(StaffDetail)
        .join(User, StaffDetail.staff_id == User.user_id)
        .filter(User.role == "staff")
    )
    total = base.with_entities(func.count(StaffDetail.staff_id)).scalar() or 0
    page_info = paginate(page, limit, total)

    rows = (
        base.order_by(StaffDetail.staff_id)
        .limit(page_info.page_size)
        .offset(page_info.offset)
        .all()
    )
    return [detail.to_dict() for detail in rows], page_info


def _text(value: object) -> str:
    return "" if value is None else str(value).strip()


@dataclass
class StaffPatch:
    salary_per_hour: object = UNSET
    notes: object = UNSET
    full_name: object = UNSET
    phone: object = UNSET
    dob: object = UNSET

    @classmethod
    def from_fields(cls, data: Mapping) -> "StaffPatch":
        """Build a patch from request fields; keys that were not sent stay UNSET."""
        patch = cls()

        if "salary_per_hour" in data:
            try:
                rate = Decimal(str(data["salary_per_hour"]).strip())
            except InvalidOperation:
                raise MissingParameter("salary_per_hour must be a number") from None
            if not rate.is_finite() or rate < 0:
                raise MissingParameter("salary_per_hour must be a non-negative number")
            patch.salary_per_hour = rate

        if "notes" in data:
            patch.notes = str(data["notes"]) if data["notes"] is not None else None

        if "full_name" in data:
            full_name = _text(data["full_name"])
            if not full_name:
                raise MissingParameter("full_name cannot be empty")
            patch.full_name = full_name

        if "phone" in data:
            patch.phone = _text(data["phone"]) or None

        if "dob" in data:
            raw_dob = data["dob"]
            patch.dob = parse_iso_date(raw_dob, "dob") if raw_dob not in (None, "") else None

        return patch

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is UNSET for f in fields(self))

    def merge(self, current: Mapping) -> dict[str, object]:
        """Return ``current`` with every set field of the patch applied."""
        merged = dict(current)
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not UNSET:
                merged[f.name] = value
        return merged


def update_staff_details(staff_id: object, patch: StaffPatch) -> StaffDetail:
    try:
        key = int(staff_id)
    except (TypeError, ValueError):
        raise MissingParameter("Missing staff ID.") from None

    with transaction():
        detail = db.session.get(StaffDetail, key)
        if detail is None or detail.user is None or detail.user.role != "staff":
            raise StaffNotFound("Staff member not found.")

        user = detail.user
        current = {
            "salary_per_hour": detail.salary_per_hour,
            "notes": detail.notes,
            "full_name": user.full_name,
            "phone": user.phone,
            "dob": user.dob,
        }
        merged = patch.merge(current)

        detail.salary_per_hour = merged["salary_per_hour"]
        detail.notes = merged["notes"]
        user.full_name = merged["full_name"]
        user.phone = merged["phone"]
        user.dob = merged["dob"]

    logger.info("Updated staff details for %s", key)
    return db.session.get(StaffDetail, key)


def staff_profile(staff_id: int) -> StaffDetail:
    """Return the caller's own employment record."""
    detail = db.session.get(StaffDetail, staff_id)
    if detail is None:
        raise StaffNotFound("Staff member not found.")
    return detail
