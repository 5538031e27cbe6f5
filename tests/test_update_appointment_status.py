"""Endpoint tests for status updates, staff assignment and client edits."""
from __future__ import annotations

from salonbook.extensions import db
from salonbook.models import Appointment


def _status(appointment_id):
    db.session.expire_all()
    return db.session.get(Appointment, appointment_id).status


def test_admin_confirms_appointment_200(client, salon, sink):
    response = client.put(
        "/appointments/101/status",
        json={"user_id": salon.admin_id, "role": "admin", "status": "confirmed"},
    )
    data = response.get_json()

    assert response.status_code == 200
    assert data["status"] == "success"
    assert data["data"]["status"] == "confirmed"
    assert sink.events[-1].title == "Appointment Confirmed"


def test_staff_completes_own_appointment_200(client, salon):
    response = client.put(
        "/appointments/102/status",
        json={"user_id": salon.staff_id, "role": "staff", "status": "completed", "notes": "Went well"},
    )

    assert response.status_code == 200
    assert response.get_json()["data"]["notes"] == "Went well"
    assert _status(102) == "completed"


def test_staff_on_unassigned_appointment_404(client, salon, sink):
    response = client.put(
        "/appointments/105/status",
        json={"user_id": salon.staff_id, "role": "staff", "status": "confirmed"},
    )

    assert response.status_code == 404
    assert response.get_json()["status"] == "error"
    assert _status(105) == "pending"
    assert sink.events == []


def test_completed_appointment_cannot_change_409(client, salon):
    response = client.put(
        "/appointments/103/status",
        json={"user_id": salon.admin_id, "role": "admin", "status": "cancelled"},
    )

    assert response.status_code == 409
    assert response.get_json()["message"] == "Cannot change status of a completed appointment"
    assert _status(103) == "completed"


def test_invalid_status_409(client, salon):
    response = client.put(
        "/appointments/101/status",
        json={"user_id": salon.admin_id, "role": "admin", "status": "in_progress"},
    )

    assert response.status_code == 409
    assert response.get_json()["status"] == "error"


def test_client_cannot_update_status_403(client, salon):
    response = client.put(
        "/appointments/101/status",
        json={"user_id": salon.client_id, "role": "client", "status": "confirmed"},
    )

    assert response.status_code == 403


def test_admin_assigns_staff_200(client, salon, sink):
    response = client.put(
        "/appointments/105/staff",
        json={"user_id": salon.admin_id, "role": "admin", "staff_id": salon.staff_id},
    )
    data = response.get_json()

    assert response.status_code == 200
    assert data["data"]["staff_id"] == salon.staff_id
    assert data["data"]["status"] == "pending"
    assert sink.events[-1].event_type == "staff_assigned"


def test_assign_staff_requires_staff_id_400(client, salon):
    response = client.put(
        "/appointments/105/staff",
        json={"user_id": salon.admin_id, "role": "admin"},
    )

    assert response.status_code == 400
    assert response.get_json()["message"] == "Missing staff ID"


def test_assign_non_staff_404(client, salon):
    response = client.put(
        "/appointments/105/staff",
        json={"user_id": salon.admin_id, "role": "admin", "staff_id": salon.client_id},
    )

    assert response.status_code == 404
    assert response.get_json()["message"] == "Invalid staff ID or user is not a staff member"


def test_staff_cannot_assign_403(client, salon):
    response = client.put(
        "/appointments/105/staff",
        json={"user_id": salon.staff_id, "role": "staff", "staff_id": salon.staff_id},
    )

    assert response.status_code == 403


def test_client_edits_appointment_200(client, salon):
    response = client.put(
        "/appointments/101",
        json={
            "user_id": salon.client_id,
            "role": "client",
            "service_id": salon.colour_id,
            "date": "2030-02-01",
            "time": "09:15",
        },
    )
    data = response.get_json()

    assert response.status_code == 200
    assert data["data"]["service_name"] == "Hair Colouring"
    assert data["data"]["date"] == "2030-02-01"
    assert data["data"]["time"] == "09:15:00"
    assert data["data"]["price"] == 80.0
    assert data["data"]["status"] == "pending"


def test_client_edit_cancelled_appointment_409(client, salon):
    response = client.put(
        "/appointments/104",
        json={
            "user_id": salon.client_id,
            "role": "client",
            "service_id": salon.colour_id,
            "date": "2030-02-01",
            "time": "09:15",
        },
    )

    assert response.status_code == 409
    assert _status(104) == "cancelled"


def test_numeric_status_is_rejected_in_envelope(client, salon):
    response = client.put(
        "/appointments/101/status",
        json={"user_id": salon.admin_id, "role": "admin", "status": 5},
    )

    assert response.status_code == 409
    assert response.get_json() == {"status": "error", "message": "Cannot move an appointment to '5'"}
    assert _status(101) == "pending"
