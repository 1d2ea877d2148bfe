import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler.models.notification import Notification

logger = logging.getLogger(__name__)

RECIPIENT_DOCTOR = 'doctor'
RECIPIENT_PATIENT = 'patient'


class Notifier:
    """Stores in-app notifications.

    Delivery is best-effort: a failure is logged and rolled back, never raised,
    so callers must have committed their own work before notifying.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def notify(self, recipient_id: str, recipient_type: str, message: str) -> bool:
        try:
            self.db.add(Notification(recipient_id=recipient_id, recipient_type=recipient_type, message=message))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception('Failed to notify %s %s', recipient_type, recipient_id)
            return False
        return True

    def notify_many(self, messages: list[tuple[str, str, str]]) -> int:
        delivered = 0
        for recipient_id, recipient_type, message in messages:
            if self.notify(recipient_id, recipient_type, message):
                delivered += 1
        return delivered
