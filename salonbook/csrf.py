"""CSRF token verification for state-changing client requests.

Tokens are issued elsewhere; here they only need to verify. A token is an
itsdangerous signature over the acting user's id, accepted from the
``X-CSRF-Token`` header or a ``csrf_token`` field. Verification is skipped
when ``CSRF_ENABLED`` is false.
"""
from __future__ import annotations

from collections.abc import Mapping

from flask import current_app, request
from itsdangerous import BadData, URLSafeTimedSerializer

from .errors import CsrfError

CSRF_SALT = "csrf-token"
CSRF_HEADER_NAME = "X-CSRF-Token"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=CSRF_SALT)


def generate_csrf_token(user_id: int) -> str:
    return _serializer().dumps({"user_id": user_id})


def verify_csrf(fields: Mapping, user_id: int) -> None:
    if not current_app.config.get("CSRF_ENABLED", True):
        return

    token = request.headers.get(CSRF_HEADER_NAME) or fields.get("csrf_token")
    if not token:
        raise CsrfError("Missing CSRF token")

    try:
        payload = _serializer().loads(
            str(token), max_age=current_app.config.get("CSRF_TOKEN_MAX_AGE", 7200)
        )
    except BadData:
        current_app.logger.info("Rejected CSRF token for user %s", user_id)
        raise CsrfError() from None

    if not isinstance(payload, dict) or payload.get("user_id") != user_id:
        raise CsrfError()
