"""Transaction helper around the shared SQLAlchemy session."""
from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from .errors import StoreError
from .extensions import db

logger = logging.getLogger(__name__)


@contextmanager
def transaction():
    """Commit on success; roll back and re-raise on any failure.

    Database failures surface as ``StoreError`` so callers see a single
    error type for store problems.
    """
    try:
        yield db.session
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Transaction rolled back")
        raise StoreError() from exc
    except Exception:
        db.session.rollback()
        raise
