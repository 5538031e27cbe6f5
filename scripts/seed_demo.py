"""Seed a local database with demo users, services and appointments."""
from __future__ import annotations

import argparse
import sys
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from pathlib import Path

# Ensure the project root is on sys.path so ``salonbook`` can be imported when the script is executed directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salonbook import create_app
from salonbook.extensions import db
from salonbook.models import (Appointment, Feedback, Service, StaffDetail, User,
                              WorkLogEntry)


def seed(reset: bool) -> None:
    app = create_app()

    with app.app_context():
        if reset:
            db.drop_all()
        db.create_all()

        if User.query.filter_by(email="admin@salon.test").first() is not None:
            print("Demo data already present; use --reset to start over.")
            return

        admin = User(full_name="Admin User", email="admin@salon.test", role="admin")
        stylist = User(full_name="Sara Stylist", email="sara@salon.test", role="staff", phone="555-0101")
        client = User(full_name="Client User", email="client@salon.test", role="client", phone="555-0199")
        db.session.add_all([admin, stylist, client])
        db.session.flush()

        db.session.add(StaffDetail(staff_id=stylist.user_id, salary_per_hour=Decimal("18.50"), notes="Colour specialist"))

        haircut = Service(name="Haircut", price=Decimal("25.00"))
        colour = Service(name="Hair Colouring", price=Decimal("80.00"))
        db.session.add_all([haircut, colour])
        db.session.flush()

        today = date.today()
        booked = []
        for offset, service, status in (
            (-2, haircut, "completed"),
            (0, colour, "confirmed"),
            (3, haircut, "pending"),
        ):
            appointment = Appointment(
                client_id=client.user_id,
                staff_id=stylist.user_id,
                service_id=service.service_id,
                date=today + timedelta(days=offset),
                time=time(10, 30),
                price=service.price,
                status=status,
            )
            booked.append(appointment)
            db.session.add(appointment)

        db.session.flush()
        db.session.add(
            Feedback(
                appointment_id=booked[0].appointment_id,
                client_id=client.user_id,
                rating=5,
                comment="Lovely cut, will book again.",
            )
        )

        started = datetime.combine(today - timedelta(days=1), time(9, 0))
        db.session.add(
            WorkLogEntry(
                staff_id=stylist.user_id,
                check_in=started,
                check_out=started + timedelta(hours=8),
                duration_minutes=480,
            )
        )

        db.session.commit()
        print("Seeded demo admin, staff, client, services, appointments and feedback.")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo data for local testing.")
    parser.add_argument("--reset", action="store_true", help="Drop all tables first")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    seed(args.reset)


if __name__ == "__main__":
    main()
