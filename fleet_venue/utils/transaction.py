import logging
from contextlib import contextmanager

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session):
    """
    Unit-of-work scope for multi-table writes.

    Everything flushed inside the block is committed together when the block
    exits normally. Any exception rolls the whole unit back and is re-raised
    unchanged, so the caller's error mapping still applies.

    Usage:
        with atomic(db):
            db.add(parent)
            db.flush()
            db.add(child)
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        logger.debug("Transaction rolled back", exc_info=True)
        raise
