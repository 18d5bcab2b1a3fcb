import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

log = logging.getLogger("db")


@contextmanager
def atomic(session: Session, label: str = "unit") -> Iterator[Session]:
    """
    Run a block of catalog or order writes as one unit.

    A fresh session gets a real transaction. A session that already
    autobegun (a read ran earlier in the request) gets a SAVEPOINT, and the
    outer transaction is committed once the savepoint is released, so callers
    never issue their own commit.

        with atomic(db, "order.create"):
            db.add(order)
    """
    nested = session.in_transaction()
    cm = session.begin_nested() if nested else session.begin()
    try:
        with cm:
            yield session
    except Exception:
        log.debug("rolled back %s", label)
        if nested:
            session.rollback()
        raise
    if nested:
        session.commit()
