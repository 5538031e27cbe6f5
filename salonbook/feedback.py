"""Client feedback moderation for the admin back office."""
from __future__ import annotations

import logging

from .errors import FeedbackNotFound, MissingParameter
from .extensions import db
from .models import Feedback
from .pagination import Page, paginate
from .store import transaction

logger = logging.getLogger(__name__)


def list_feedback(page: int, page_size: int) -> tuple[list[dict[str, object]], Page]:
    """Newest feedback first, one page at a time."""
    total = db.session.query(db.func.count(Feedback.feedback_id)).scalar() or 0
    page_info = paginate(page, page_size, total)

    rows = (
        Feedback.query.order_by(Feedback.created_at.desc(), Feedback.feedback_id.desc())
        .limit(page_info.page_size)
        .offset(page_info.offset)
        .all()
    )
    return [entry.to_dict() for entry in rows], page_info


def delete_feedback(feedback_id: object) -> None:
    try:
        key = int(str(feedback_id).strip())
    except (TypeError, ValueError):
        raise MissingParameter("Missing feedback ID") from None

    with transaction():
        entry = db.session.get(Feedback, key)
        if entry is None:
            raise FeedbackNotFound()
        db.session.delete(entry)

    logger.info("Deleted feedback %s", key)
