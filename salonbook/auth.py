"""Authorization guard run before every read or write."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import NoReturn

from .extensions import db
from .errors import Unauthorized
from .identity import Identity
from .models import User

logger = logging.getLogger(__name__)

CLIENT = "client"
STAFF = "staff"
ADMIN = "admin"


def authorize(identity: Identity, allowed_roles: Iterable[str]) -> User:
    """Confirm the identity is a real, active user holding an allowed role.

    The user lookup happens before any role comparison so a nonexistent id
    is rejected without evaluating the claimed role. Every rejection raises
    the same ``Unauthorized`` error; the reason is only logged.
    """
    user = db.session.get(User, identity.actor_id)
    if user is None:
        _reject(identity, "unknown user")

    if user.role != identity.role:
        _reject(identity, "claimed role does not match stored role")

    if user.role not in set(allowed_roles):
        _reject(identity, "role not allowed")

    if not user.is_active:
        _reject(identity, "inactive account")

    return user


def _reject(identity: Identity, reason: str) -> NoReturn:
    logger.info(
        "Authorization rejected for user_id=%s role=%s: %s",
        identity.actor_id,
        identity.role,
        reason,
    )
    raise Unauthorized()


def authorize_self_or_admin(user: User, target_staff_id: int) -> None:
    """Staff may only act on their own records; admins on anyone's."""
    if user.role == ADMIN:
        return
    if user.role == STAFF and user.user_id == target_staff_id:
        return
    logger.info("User %s may not act on staff %s", user.user_id, target_staff_id)
    raise Unauthorized()
