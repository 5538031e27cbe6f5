"""End-to-end tests for client cancellation."""
from __future__ import annotations

from datetime import timedelta

from salonbook.csrf import generate_csrf_token
from salonbook.extensions import db
from salonbook.models import Appointment, Notification
from salonbook.notifications import DatabaseNotificationSink, init_notifications


def _cancel(client, appointment_id, user_id=4, role="client", **extra):
    return client.post(
        f"/appointments/{appointment_id}/cancel",
        json={"user_id": user_id, "role": role, **extra},
    )


def test_cancel_pending_appointment_then_again(client, salon, sink, today):
    response = _cancel(client, 101)
    data = response.get_json()

    assert response.status_code == 200
    assert data["status"] == "success"
    assert data["message"] == "Appointment cancelled successfully!"
    assert data["data"]["status"] == "cancelled"

    db.session.expire_all()
    assert db.session.get(Appointment, 101).status == "cancelled"

    assert len(sink.events) == 1
    event = sink.events[0]
    assert event.event_type == "appointment_cancelled"
    assert event.user_id == salon.client_id
    assert event.payload == {
        "service_name": "Haircut",
        "date": (today + timedelta(days=2)).isoformat(),
        "time": "10:00:00",
        "status": "cancelled",
    }

    second = _cancel(client, 101)
    assert second.status_code == 409
    assert second.get_json() == {"status": "error", "message": "Cannot cancel this appointment"}
    assert len(sink.events) == 1


def test_cancel_completed_appointment(client, salon):
    response = _cancel(client, 103)

    assert response.status_code == 409
    assert response.get_json()["status"] == "error"
    db.session.expire_all()
    assert db.session.get(Appointment, 103).status == "completed"


def test_cancel_other_clients_appointment_404(client, salon):
    response = _cancel(client, 105)
    data = response.get_json()

    assert response.status_code == 404
    assert data == {"status": "error", "message": "Appointment not found"}


def test_cancel_requires_client_role(client, salon):
    response = _cancel(client, 101, user_id=salon.admin_id, role="admin")

    assert response.status_code == 403
    assert response.get_json()["message"] == "Unauthorized access"


def test_cancel_without_identity(client, salon):
    response = client.post("/appointments/101/cancel", json={})

    assert response.status_code == 401
    assert response.get_json()["status"] == "error"


def test_cancel_with_form_body(client, salon):
    response = client.post(
        "/appointments/102/cancel",
        data={"user_id": "4", "role": "client"},
    )

    assert response.status_code == 200
    assert response.get_json()["data"]["service_name"] == "Hair Colouring"


def test_cancel_checks_csrf_when_enabled(app, client, salon):
    app.config["CSRF_ENABLED"] = True

    missing = _cancel(client, 101)
    assert missing.status_code == 403
    assert missing.get_json()["message"] == "Missing CSRF token"

    wrong_user = _cancel(client, 101, csrf_token=generate_csrf_token(salon.other_client_id))
    assert wrong_user.status_code == 403

    ok = client.post(
        "/appointments/101/cancel",
        json={"user_id": 4, "role": "client"},
        headers={"X-CSRF-Token": generate_csrf_token(salon.client_id)},
    )
    assert ok.status_code == 200


def test_cancel_persists_notification_with_database_sink(app, client, salon):
    init_notifications(app, DatabaseNotificationSink())

    response = _cancel(client, 101)

    assert response.status_code == 200
    notification = Notification.query.filter_by(appointment_id=101).one()
    assert notification.notification_type == "appointment_cancelled"
    assert notification.payload["service_name"] == "Haircut"


class ExplodingSink:
    def send(self, event):
        raise RuntimeError("mail server down")


def test_failing_sink_does_not_undo_cancellation(app, client, salon):
    init_notifications(app, ExplodingSink())

    response = _cancel(client, 101)

    assert response.status_code == 200
    assert response.get_json()["status"] == "success"
    db.session.expire_all()
    assert db.session.get(Appointment, 101).status == "cancelled"
