"""Notification dispatch for clearance decisions.

Dispatch happens after the decision is committed and is fire-and-forget:
a failing dispatcher is logged and never undoes or fails the decision.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


STATUS_TO_NOTIFICATION_TYPE = {
    "approved": NotificationType.CLEARANCE_APPROVED,
    "rejected": NotificationType.CLEARANCE_REJECTED,
    "completed": NotificationType.CLEARANCE_COMPLETED,
    "submitted": NotificationType.CLEARANCE_SUBMITTED,
}


class NotificationDispatcher(ABC):
    """Interface for delivering clearance notifications."""

    @abstractmethod
    def dispatch(
        self,
        recipient_id: int,
        type: str,
        department_name: Optional[str],
        new_status: str,
        clearance_id: Optional[int] = None,
        department_id: Optional[int] = None,
    ) -> None:
        """Deliver one notification; exceptions are logged and dropped by ``notify_safely``."""


class InAppNotificationDispatcher(NotificationDispatcher):
    """Stores notifications in the recipient's in-app inbox."""

    def __init__(self, db: Session):
        self.db = db

    def dispatch(self, recipient_id, type, department_name, new_status,
                 clearance_id=None, department_id=None) -> None:
        title, message = _render(type, department_name, new_status)
        self.db.add(Notification(
            recipient_id=recipient_id,
            type=type,
            title=title,
            message=message,
            clearance_id=clearance_id,
            department_id=department_id,
        ))
        self.db.commit()


def _render(type: str, department_name: Optional[str], new_status: str) -> tuple[str, str]:
    if type == NotificationType.CLEARANCE_COMPLETED:
        return "Clearance completed", "All departments have approved your clearance."
    if type == NotificationType.CLEARANCE_SUBMITTED:
        return "Clearance submitted", "Your clearance application has been submitted."
    return (
        f"{department_name} {new_status}",
        f"{department_name} has {new_status} your clearance request.",
    )


def notify_safely(db: Session, dispatcher: Optional[NotificationDispatcher], **payload) -> None:
    """Dispatch one notification; failures are logged, rolled back and dropped."""
    if dispatcher is None:
        return
    try:
        dispatcher.dispatch(**payload)
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Notification dispatch failed for %s", payload, exc_info=True)
    except Exception:
        logger.warning("Notification dispatch failed for %s", payload, exc_info=True)
