"""Print a session token and CSRF token for a user, for local testing."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure the project root is on sys.path so ``salonbook`` can be imported when the script is executed directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salonbook import create_app
from salonbook.csrf import generate_csrf_token
from salonbook.identity import build_token
from salonbook.models import User


def issue(email: str) -> None:
    app = create_app()

    with app.app_context():
        user = User.query.filter_by(email=email).first()
        if user is None:
            print(f"Error: no user with email '{email}'")
            return

        print(f"Authorization: Bearer {build_token(user.user_id, user.role)}")
        print(f"X-CSRF-Token: {generate_csrf_token(user.user_id)}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Issue tokens for a user.")
    parser.add_argument("email", help="User email address")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    issue(args.email)


if __name__ == "__main__":
    main()
