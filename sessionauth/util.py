"""Helpers for transactions, timestamps and schema management."""

from typing import Generator, Any
from datetime import datetime
from contextlib import contextmanager
import logging

from pytz import UTC
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from .exceptions import NoSuchUser
from .models import Base

logger = logging.getLogger(__name__)


def account_key(account_id: str) -> int:
    """Convert an account ID from the domain into a primary key."""
    try:
        return int(account_id)
    except (TypeError, ValueError) as e:
        raise NoSuchUser(f'No such account {account_id}') from e


def now() -> int:
    """Get the current epoch/unix time."""
    return epoch(datetime.now(tz=UTC))


def epoch(t: datetime) -> int:
    """Convert a :class:`.datetime` to UNIX time."""
    delta = t - datetime.fromtimestamp(0, tz=UTC)
    return int(round((delta).total_seconds()))


def from_epoch(t: int) -> datetime:
    """Get a :class:`datetime` from an UNIX timestamp."""
    return datetime.fromtimestamp(t, tz=UTC)


@contextmanager
def transaction(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for database transaction.

    A new session is opened from ``session_factory`` for every block, so
    callers on different threads never share a connection.
    """
    session: Session = session_factory()
    try:
        yield session
        # The caller may have explicitly committed already, in order to
        # implement exception handling logic. We only want to commit here if
        # there is anything remaining that is not flushed.
        if session.new or session.dirty or session.deleted \
                or session.in_transaction():
            session.commit()
    except SQLAlchemyError as e:
        logger.error('Commit failed, rolling back: %s', str(e))
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all(engine: Engine) -> None:
    """Create all tables in the database."""
    Base.metadata.create_all(bind=engine)


def drop_all(engine: Engine) -> None:
    """Drop all tables in the database."""
    Base.metadata.drop_all(bind=engine)


def is_available(session_factory: sessionmaker, **kwargs: Any) -> bool:
    """Check our connection to the database."""
    try:
        with transaction(session_factory) as session:
            session.execute(text("SELECT 1")).all()
    except Exception as e:
        logger.error('Encountered an error talking to database: %s', e)
        return False
    return True
