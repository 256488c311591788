import logging
from contextlib import contextmanager

from external.database import db

logger = logging.getLogger(__name__)


@contextmanager
def session_scope():
    """Commit the current session on success, roll it back on any error"""
    session = db.session
    try:
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        logger.debug("Session rolled back")
        raise
