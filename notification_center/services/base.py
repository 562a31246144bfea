from contextlib import contextmanager
import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from notification_center.core.errors import FetchError, WriteConflict

logger = logging.getLogger(__name__)


class StoreService:
    """Session holder that maps SQLAlchemy failures onto the notification errors."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _reading(self):
        try:
            yield
        except OperationalError as exc:
            self.db.rollback()
            raise FetchError(str(exc)) from exc

    @contextmanager
    def _writing(self):
        try:
            yield
        except OperationalError as exc:
            self.db.rollback()
            raise FetchError(str(exc)) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Write rejected by the store: %s", exc)
            raise WriteConflict(str(exc)) from exc
