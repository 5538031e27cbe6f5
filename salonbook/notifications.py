"""Notification sink for appointment lifecycle events.

Dispatch happens after the lifecycle change has been committed. A failing
sink is logged and otherwise ignored so it can never undo that change.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .models import Notification

logger = logging.getLogger(__name__)

SINK_EXTENSION_KEY = "salonbook.notification_sink"


@dataclass
class LifecycleEvent:
    event_type: str
    user_id: int
    appointment_id: int
    title: str
    message: str
    payload: dict = field(default_factory=dict)


class NotificationSink(Protocol):
    def send(self, event: LifecycleEvent) -> None:
        ...


class DatabaseNotificationSink:
    """Persist events to the notifications table for later delivery."""

    def send(self, event: LifecycleEvent) -> None:
        notification = Notification(
            user_id=event.user_id,
            appointment_id=event.appointment_id,
            title=event.title,
            message=event.message,
            notification_type=event.event_type,
            payload=event.payload,
        )
        try:
            db.session.add(notification)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise


class RecordingNotificationSink:
    """Keep events in memory; handy for local runs and tests."""

    def __init__(self) -> None:
        self.events: list[LifecycleEvent] = []

    def send(self, event: LifecycleEvent) -> None:
        self.events.append(event)


def init_notifications(app, sink: NotificationSink | None = None) -> None:
    app.extensions[SINK_EXTENSION_KEY] = sink or DatabaseNotificationSink()


def dispatch(event: LifecycleEvent | None) -> bool:
    """Hand an event to the configured sink. Returns whether it was accepted."""
    if event is None:
        return False

    sink = current_app.extensions.get(SINK_EXTENSION_KEY)
    if sink is None:
        logger.warning("No notification sink configured; dropping %s", event.event_type)
        return False

    try:
        sink.send(event)
    except Exception:
        logger.exception(
            "Notification %s for appointment %s failed",
            event.event_type,
            event.appointment_id,
        )
        return False
    return True
