"""HTTP routes for the SalonBook backend.

Every endpoint answers with the envelope
``{"status": "success"|"error", "message"?, "data"?, ...}``. Identity fields
(``user_id``, ``role``) may be sent in the body or query string, or come from
the established session.
"""
from __future__ import annotations

from flask import Blueprint, Flask, Response, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from . import appointments, attendance, feedback, lifecycle, salary, staff, stats
from .auth import ADMIN, CLIENT, STAFF, authorize, authorize_self_or_admin
from .csrf import verify_csrf
from .errors import MissingParameter, SalonError, StaffNotFound, StoreError
from .extensions import db
from .filters import build_filter, client_filters, schedule_filters
from .identity import request_fields, resolve_identity, session_identity
from .models import User, local_now
from .notifications import dispatch
from .pagination import parse_page_number, parse_page_size

bp = Blueprint("api", __name__)


@bp.errorhandler(SalonError)
def handle_salon_error(exc: SalonError) -> tuple[Response, int]:
    db.session.rollback()
    return jsonify(exc.to_dict()), exc.status_code


@bp.errorhandler(SQLAlchemyError)
def handle_database_error(exc: SQLAlchemyError) -> tuple[Response, int]:
    db.session.rollback()
    current_app.logger.exception("Unhandled database error", exc_info=exc)
    error = StoreError()
    return jsonify(error.to_dict()), error.status_code


def _authorized(*roles: str) -> tuple[User, dict[str, object]]:
    """Resolve and authorize the caller; return the user and the request fields."""
    fields = request_fields()
    identity = resolve_identity(fields, session_identity())
    return authorize(identity, roles), fields


def _success(
    data: object = None, message: str | None = None, status_code: int = 200, **extra: object
) -> tuple[Response, int]:
    body: dict[str, object] = {"status": "success"}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status_code


def _int_field(fields: dict[str, object], name: str, message: str) -> int:
    value = fields.get(name)
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise MissingParameter(message) from None


@bp.get("/health")
def health_check() -> tuple[Response, int]:
    """Expose a simple uptime check endpoint.
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is healthy and running.
    """
    return _success(message="ok")


@bp.get("/db-health")
def database_health() -> tuple[Response, int]:
    """Check connectivity to the configured database."""
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.exception("Database connectivity check failed", exc_info=exc)
        return jsonify({"status": "error", "message": "Database unavailable"}), 500

    return _success(message="Database ok")


# ---------------------------------------------------------------------------
# Appointment lifecycle
# ---------------------------------------------------------------------------

@bp.post("/appointments/<int:appointment_id>/cancel")
def cancel_appointment(appointment_id: int) -> tuple[Response, int]:
    """Cancel one of the caller's own appointments.
    ---
    tags:
      - Appointments
    parameters:
      - in: path
        name: appointment_id
        required: true
        type: integer
      - in: body
        name: body
        schema:
          properties:
            csrf_token:
              type: string
    responses:
      200:
        description: Appointment cancelled; a notification is queued.
      404:
        description: No such appointment for this client.
      409:
        description: Appointment already completed or cancelled.
    """
    user, fields = _authorized(CLIENT)
    verify_csrf(fields, user.user_id)

    snapshot = lifecycle.cancel(appointment_id, user.user_id)
    dispatch(snapshot.to_event())

    return _success(
        data={"appointment_id": appointment_id, **snapshot.to_payload()},
        message="Appointment cancelled successfully!",
    )


@bp.put("/appointments/<int:appointment_id>")
def edit_appointment(appointment_id: int) -> tuple[Response, int]:
    """Change the service, date and time of the caller's active appointment.
    ---
    tags:
      - Appointments
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            service_id:
              type: integer
            date:
              type: string
              example: "2024-06-01"
            time:
              type: string
              example: "14:30"
    responses:
      200:
        description: Appointment updated
      409:
        description: Appointment already completed or cancelled.
    """
    user, fields = _authorized(CLIENT)

    appointment, event = lifecycle.edit(
        appointment_id,
        user.user_id,
        fields.get("service_id"),
        fields.get("date"),
        fields.get("time"),
    )
    dispatch(event)

    return _success(data=appointment.to_dict(), message="Appointment updated successfully")


@bp.put("/appointments/<int:appointment_id>/status")
def update_appointment_status(appointment_id: int) -> tuple[Response, int]:
    """Advance an appointment's status (admin, or the assigned staff member).
    ---
    tags:
      - Appointments
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            status:
              type: string
              enum: [confirmed, completed, cancelled]
            notes:
              type: string
    responses:
      200:
        description: Status updated
      404:
        description: Appointment not found (or not assigned to the caller)
      409:
        description: Transition not allowed
    """
    user, fields = _authorized(ADMIN, STAFF)

    notes = fields.get("notes")
    appointment, event = lifecycle.update_status(
        appointment_id,
        fields.get("status"),
        user,
        notes=str(notes) if notes not in (None, "") else None,
    )
    dispatch(event)

    return _success(data=appointment.to_dict(), message="Appointment status updated")


@bp.put("/appointments/<int:appointment_id>/staff")
def assign_appointment_staff(appointment_id: int) -> tuple[Response, int]:
    """Assign a staff member to an appointment (admin only).
    ---
    tags:
      - Appointments
    parameters:
      - in: path
        name: appointment_id
        required: true
        type: integer
      - in: body
        name: body
        required: true
        schema:
          properties:
            staff_id:
              type: integer
    responses:
      200:
        description: Staff assigned; the client is notified.
      400:
        description: Missing staff ID
      404:
        description: Unknown appointment, or the user is not active staff
    """
    _, fields = _authorized(ADMIN)
    if fields.get("staff_id") in (None, ""):
        raise MissingParameter("Missing staff ID")

    appointment, event = lifecycle.assign_staff(appointment_id, fields["staff_id"])
    dispatch(event)

    return _success(data=appointment.to_dict(), message="Staff assigned successfully")


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

@bp.route("/admin/appointments", methods=["GET", "POST"])
def list_all_appointments() -> tuple[Response, int]:
    """List every appointment with a named filter and pagination (admin).
    ---
    tags:
      - Admin
    parameters:
      - name: filter
        in: query
        type: string
        enum: [all, today, upcoming, past, pending, confirmed, completed, cancelled,
               by_client_name, by_staff_name, by_specific_date]
        default: all
      - name: client_name
        in: query
        type: string
      - name: staff_name
        in: query
        type: string
      - name: date
        in: query
        type: string
        description: YYYY-MM-DD, for by_specific_date
      - name: page
        in: query
        type: integer
        default: 1
    responses:
      200:
        description: One page of appointments with total_results and total_pages
      400:
        description: Unknown filter or missing filter parameter
    """
    _, fields = _authorized(ADMIN)

    appointment_filter = build_filter(fields.get("filter"), fields)
    page = parse_page_number(fields.get("page"))
    page_size = current_app.config.get("ADMIN_PAGE_SIZE", 10)

    rows, page_info = appointments.list_appointments(
        appointment_filter, page, page_size, local_now().date()
    )
    return _success(
        data=rows,
        total_results=page_info.total,
        total_pages=page_info.total_pages,
        page=page_info.page,
    )


@bp.route("/client/appointments", methods=["GET", "POST"])
def list_client_appointments() -> tuple[Response, int]:
    """List the caller's own appointments, newest first unless ``sort=asc``.
    ---
    tags:
      - Appointments
    parameters:
      - name: status
        in: query
        type: string
        enum: [pending, confirmed, completed, cancelled]
      - name: date_from
        in: query
        type: string
      - name: date_to
        in: query
        type: string
      - name: sort
        in: query
        type: string
        enum: [asc, desc]
        default: desc
      - name: page
        in: query
        type: integer
        default: 1
    responses:
      200:
        description: One page of the client's appointments
    """
    user, fields = _authorized(CLIENT)

    filters = client_filters(
        user.user_id,
        fields.get("status"),
        fields.get("date_from"),
        fields.get("date_to"),
    )
    descending = str(fields.get("sort") or "desc").lower() != "asc"
    page = parse_page_number(fields.get("page"))
    page_size = current_app.config.get("ADMIN_PAGE_SIZE", 10)

    rows, page_info = appointments.list_appointments(
        filters, page, page_size, local_now().date(), descending=descending
    )
    return _success(
        data=rows,
        total_results=page_info.total,
        total_pages=page_info.total_pages,
        page=page_info.page,
    )


# ---------------------------------------------------------------------------
# Staff management
# ---------------------------------------------------------------------------

@bp.route("/admin/staff", methods=["GET", "POST"])
def list_staff_members() -> tuple[Response, int]:
    """List staff with their employment details (admin).
    ---
    tags:
      - Staff
    parameters:
      - name: page
        in: query
        type: integer
        default: 1
      - name: limit
        in: query
        type: integer
        default: 10
        maximum: 50
    responses:
      200:
        description: Staff rows plus total
    """
    _, fields = _authorized(ADMIN)

    page = parse_page_number(fields.get("page"))
    limit = parse_page_size(
        fields.get("limit"),
        default=current_app.config.get("STAFF_PAGE_SIZE", 10),
        maximum=current_app.config.get("MAX_PAGE_SIZE", 50),
    )

    rows, page_info = staff.list_staff(page, limit)
    return _success(data=rows, total=page_info.total, total_pages=page_info.total_pages)


@bp.route("/admin/staff/<int:staff_id>", methods=["PUT", "PATCH"])
def update_staff_member(staff_id: int) -> tuple[Response, int]:
    """Partially update a staff member; fields that are not sent keep their value.
    ---
    tags:
      - Staff
    parameters:
      - in: path
        name: staff_id
        required: true
        type: integer
      - in: body
        name: body
        schema:
          properties:
            salary_per_hour:
              type: number
            notes:
              type: string
            full_name:
              type: string
            phone:
              type: string
            dob:
              type: string
              example: "1990-04-12"
    responses:
      200:
        description: Updated staff record
      400:
        description: No fields sent, or a field failed validation
      404:
        description: Staff member not found
    """
    _, fields = _authorized(ADMIN)

    patch = staff.StaffPatch.from_fields(fields)
    if patch.is_empty():
        raise MissingParameter("No staff details to update.")
    detail = staff.update_staff_details(staff_id, patch)

    return _success(data=detail.to_dict(), message="Staff details updated successfully!")


@bp.route("/staff/salary", methods=["GET", "POST"])
def get_staff_salary() -> tuple[Response, int]:
    """Compute a staff member's salary for a period.
    ---
    tags:
      - Staff
    parameters:
      - name: staff_id
        in: query
        type: integer
        description: Defaults to the caller
      - name: period
        in: query
        type: string
        enum: [day, week, month, all]
        required: true
    responses:
      200:
        description: hours_worked, salary_per_hour and calculated_salary
    """
    user, fields = _authorized(ADMIN, STAFF)

    raw_staff_id = fields.get("staff_id")
    if raw_staff_id in (None, ""):
        raw_staff_id = user.user_id
    try:
        staff_id = int(raw_staff_id)
    except (TypeError, ValueError):
        raise StaffNotFound() from None

    authorize_self_or_admin(user, staff_id)
    period = salary.parse_period(fields.get("period"))

    report = salary.compute_salary(staff_id, period, local_now().date())
    return _success(data=report.to_dict())


@bp.route("/staff/schedule", methods=["GET", "POST"])
def view_staff_schedule() -> tuple[Response, int]:
    """Appointments of one staff member ordered by date and time.

    ``mode=today`` limits to today; otherwise ``date_from`` and ``date_to``
    may bound the range.
    ---
    tags:
      - Staff
    parameters:
      - name: staff_id
        in: query
        type: integer
        description: Defaults to the caller for staff; required for admins
      - name: mode
        in: query
        type: string
        enum: [today]
      - name: date_from
        in: query
        type: string
      - name: date_to
        in: query
        type: string
    responses:
      200:
        description: Ordered schedule rows
      403:
        description: Staff asking for another member's schedule
    """
    user, fields = _authorized(ADMIN, STAFF)

    if fields.get("staff_id") in (None, ""):
        if user.role != STAFF:
            raise MissingParameter("Missing staff ID")
        staff_id = user.user_id
    else:
        staff_id = _int_field(fields, "staff_id", "Invalid staff ID")

    authorize_self_or_admin(user, staff_id)
    staff.require_active_staff(staff_id)

    mode = str(fields.get("mode") or "").strip().lower() or None
    filters = schedule_filters(staff_id, mode, fields.get("date_from"), fields.get("date_to"))

    rows = appointments.staff_schedule(filters, local_now().date())
    return _success(data=rows)


@bp.post("/staff/check-in")
def staff_check_in() -> tuple[Response, int]:
    """Open a work-log entry for the calling staff member.
    ---
    tags:
      - Attendance
    responses:
      201:
        description: Checked in
      409:
        description: Already checked in
    """
    user, _ = _authorized(STAFF)
    entry = attendance.check_in(user.user_id, local_now())
    return _success(data=entry.to_dict(), message="Checked in successfully", status_code=201)


@bp.post("/staff/check-out")
def staff_check_out() -> tuple[Response, int]:
    """Close the caller's open work-log entry.
    ---
    tags:
      - Attendance
    responses:
      200:
        description: Checked out; duration_minutes is set
      409:
        description: No open check-in
    """
    user, _ = _authorized(STAFF)
    entry = attendance.check_out(user.user_id, local_now())
    return _success(data=entry.to_dict(), message="Checked out successfully")


@bp.route("/staff/attendance", methods=["GET", "POST"])
def staff_attendance() -> tuple[Response, int]:
    """Report whether the calling staff member is currently checked in.
    ---
    tags:
      - Attendance
    responses:
      200:
        description: checked_in flag plus the open entry, or null
    """
    user, _ = _authorized(STAFF)
    entry = attendance.attendance_status(user.user_id)
    body = jsonify({
        "status": "success",
        "checked_in": entry is not None,
        "data": entry.to_dict() if entry is not None else None,
    })
    return body, 200


@bp.route("/staff/profile", methods=["GET", "POST"])
def staff_own_profile() -> tuple[Response, int]:
    """Return the calling staff member's profile and employment details.
    ---
    tags:
      - Staff
    responses:
      200:
        description: Staff record
      404:
        description: No employment record for this user
    """
    user, _ = _authorized(STAFF)
    return _success(data=staff.staff_profile(user.user_id).to_dict())


# ---------------------------------------------------------------------------
# Admin dashboard
# ---------------------------------------------------------------------------

@bp.route("/admin/dashboard", methods=["GET", "POST"])
def admin_dashboard() -> tuple[Response, int]:
    """Aggregate counts, month revenue and the most booked services (admin).
    ---
    tags:
      - Admin
    responses:
      200:
        description: Dashboard statistics
    """
    _authorized(ADMIN)
    return _success(data=stats.dashboard_stats(local_now().date()))


# ---------------------------------------------------------------------------
# Feedback moderation
# ---------------------------------------------------------------------------

@bp.route("/admin/feedback", methods=["GET", "POST"])
def list_client_feedback() -> tuple[Response, int]:
    """List client feedback, newest first (admin).
    ---
    tags:
      - Feedback
    parameters:
      - name: page
        in: query
        type: integer
        default: 1
    responses:
      200:
        description: One page of feedback with total_results and total_pages
    """
    _, fields = _authorized(ADMIN)

    page = parse_page_number(fields.get("page"))
    page_size = current_app.config.get("ADMIN_PAGE_SIZE", 10)

    rows, page_info = feedback.list_feedback(page, page_size)
    return _success(
        data=rows,
        total_results=page_info.total,
        total_pages=page_info.total_pages,
        page=page_info.page,
    )


@bp.post("/admin/feedback/delete")
def delete_client_feedback() -> tuple[Response, int]:
    """Delete one feedback entry (admin).
    ---
    tags:
      - Feedback
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            feedback_id:
              type: integer
    responses:
      200:
        description: Feedback deleted
      400:
        description: Missing feedback ID
      404:
        description: Feedback not found
    """
    _, fields = _authorized(ADMIN)
    feedback.delete_feedback(fields.get("feedback_id"))
    return _success(message="Feedback deleted successfully")


def register_routes(app: Flask) -> None:
    app.register_blueprint(bp)
