"""Resolve the acting user from request fields or the established session."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from flask import current_app, request, session
from itsdangerous import BadData, URLSafeTimedSerializer

from .errors import MissingIdentity

TOKEN_SALT = "auth-token"


@dataclass(frozen=True)
class Identity:
    actor_id: int
    role: str


def _token_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def build_token(user_id: int, role: str) -> str:
    """Sign a session token carrying the user id and role."""
    return _token_serializer().dumps({"user_id": user_id, "role": role})


def _coerce_id(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _clean_role(value: object) -> str | None:
    if value is None:
        return None
    role = str(value).strip()
    return role or None


def resolve_identity(fields: Mapping, established: Mapping) -> Identity:
    """Return the ``(actor_id, role)`` pair for a request.

    Explicit request fields win over the established session, field by field.
    Raises ``MissingIdentity`` when either part cannot be resolved. The
    identity is not checked against the store here.
    """
    actor_id = _coerce_id(fields.get("user_id"))
    if actor_id is None:
        actor_id = _coerce_id(established.get("user_id"))

    role = _clean_role(fields.get("role")) or _clean_role(established.get("role"))

    if actor_id is None or role is None:
        raise MissingIdentity()
    return Identity(actor_id=actor_id, role=role)


def request_fields() -> dict[str, object]:
    """Merge query string, form body and JSON body (later sources win)."""
    fields: dict[str, object] = dict(request.args.items())
    fields.update(request.form.items())
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        fields.update(payload)
    return fields


def session_identity() -> dict[str, object]:
    """Read the identity carried by a bearer token, falling back to the cookie session."""
    auth_header = request.headers.get("Authorization", "")

    if auth_header.startswith("Bearer "):
        token = auth_header[7:]
        try:
            payload = _token_serializer().loads(
                token, max_age=current_app.config.get("AUTH_TOKEN_MAX_AGE", 86400)
            )
        except BadData:
            current_app.logger.info("Rejected invalid or expired session token")
        else:
            if isinstance(payload, dict):
                return payload

    return {"user_id": session.get("user_id"), "role": session.get("role")}


def current_identity() -> Identity:
    return resolve_identity(request_fields(), session_identity())
