"""pytest configuration: app, client and seeded salon data."""
from __future__ import annotations

import sys
from datetime import time, timedelta
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace

import pytest

# Ensure the project root is available on sys.path so tests can import the salonbook package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salonbook import create_app
from salonbook.config import TestConfig
from salonbook.extensions import db
from salonbook.models import (Appointment, Service, StaffDetail, User,
                              local_now)
from salonbook.notifications import RecordingNotificationSink


@pytest.fixture
def sink():
    return RecordingNotificationSink()


@pytest.fixture
def app(sink):
    flask_app = create_app(TestConfig, notification_sink=sink)
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def today(app):
    return local_now().date()


@pytest.fixture
def salon(app, today):
    """Admin, two stylists, two clients, two services and a few appointments."""
    admin = User(user_id=1, full_name="Amal Admin", email="admin@salon.test", role="admin")
    stylist = User(user_id=2, full_name="Sara Stylist", email="sara@salon.test", role="staff")
    other_stylist = User(user_id=3, full_name="Nour Barber", email="nour@salon.test", role="staff")
    client_user = User(user_id=4, full_name="Client One", email="c1@salon.test", role="client")
    other_client = User(user_id=5, full_name="Client Two", email="c2@salon.test", role="client")
    inactive_admin = User(
        user_id=6, full_name="Old Admin", email="old@salon.test", role="admin", is_active=False
    )
    db.session.add_all([admin, stylist, other_stylist, client_user, other_client, inactive_admin])
    db.session.flush()

    db.session.add_all([
        StaffDetail(staff_id=2, salary_per_hour=Decimal("20.00"), notes="Colour specialist"),
        StaffDetail(staff_id=3, salary_per_hour=Decimal("15.50"), notes=None),
    ])

    haircut = Service(service_id=1, name="Haircut", price=Decimal("25.00"))
    colour = Service(service_id=2, name="Hair Colouring", price=Decimal("80.00"))
    db.session.add_all([haircut, colour])
    db.session.flush()

    def booking(appointment_id, client_id, staff_id, service, day, status):
        return Appointment(
            appointment_id=appointment_id,
            client_id=client_id,
            staff_id=staff_id,
            service_id=service.service_id,
            date=day,
            time=time(10, 0),
            price=service.price,
            status=status,
        )

    db.session.add_all([
        booking(101, 4, 2, haircut, today + timedelta(days=2), "pending"),
        booking(102, 4, 2, colour, today, "confirmed"),
        booking(103, 4, 2, haircut, today - timedelta(days=3), "completed"),
        booking(104, 4, None, haircut, today + timedelta(days=5), "cancelled"),
        booking(105, 5, 3, colour, today + timedelta(days=1), "pending"),
    ])
    db.session.commit()

    return SimpleNamespace(
        admin_id=1,
        staff_id=2,
        other_staff_id=3,
        client_id=4,
        other_client_id=5,
        inactive_admin_id=6,
        haircut_id=1,
        colour_id=2,
    )
