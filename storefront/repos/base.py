# storefront/repos/base.py
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.domain.errors import StoreError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def store_errors(db: Session, action: str):
    """Rolls back and re-raises any SQLAlchemy failure as StoreError."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Store error while {action}: {e}")
        raise StoreError() from e
