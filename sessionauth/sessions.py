"""
Provides the session store.

Each successful login creates one row in ``sessions``, identified by a random
bearer token. Rows are never updated; logging out deletes the row, and the
digest of its token is written to ``revoked_tokens`` in the same transaction
so that the value can never be handed out again.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session as DBTransaction

from . import domain, tokens, util
from .exceptions import NoSuchSession, NoSuchUser, Unavailable
from .models import DBAccount, DBRevokedToken, DBSession

logger = logging.getLogger(__name__)

MAX_TOKEN_ATTEMPTS = 5
"""How many fresh tokens to try before giving up on a collision streak."""


def _to_domain(db_session: DBSession) -> domain.Session:
    return domain.Session(
        token=db_session.token,
        account_id=str(db_session.account_id),
        issued_at=util.from_epoch(db_session.issued_at),
        device_label=db_session.device_label
    )


class SessionStore(object):
    """Creates, finds and deletes sessions in the database."""

    def __init__(self, session_factory: sessionmaker,
                 token_bytes: int = tokens.DEFAULT_TOKEN_BYTES,
                 default_device_label: str = domain.DEFAULT_DEVICE_LABEL) \
            -> None:
        self._session_factory = session_factory
        self._token_bytes = token_bytes
        self._default_device_label = default_device_label

    def create(self, account_id: str,
               device_label: Optional[str] = None) -> domain.Session:
        """
        Create a new session for an account.

        Parameters
        ----------
        account_id : str
        device_label : str
            Describes the client. Defaults to ``Unknown device``.

        Returns
        -------
        :class:`.domain.Session`

        Raises
        ------
        :class:`NoSuchUser`
            The account does not exist.
        :class:`Unavailable`
            The database failed, or no unused token could be generated.

        """
        key = util.account_key(account_id)
        label = device_label or self._default_device_label
        for attempt in range(1, MAX_TOKEN_ATTEMPTS + 1):
            token = tokens.generate_token(self._token_bytes)
            try:
                with util.transaction(self._session_factory) as session:
                    if session.get(DBAccount, key) is None:
                        raise NoSuchUser(f'No such account {account_id}')
                    if session.get(DBRevokedToken, tokens.digest(token)):
                        logger.warning('Generated a revoked token; retrying')
                        continue
                    db_session = DBSession(token=token, account_id=key,
                                           device_label=label,
                                           issued_at=util.now())
                    session.add(db_session)
                    session.flush()
                    user_session = _to_domain(db_session)
            except IntegrityError as e:
                logger.warning('Token collision on attempt %i: %s',
                               attempt, e)
                continue
            except SQLAlchemyError as e:
                raise Unavailable(f'Failed to create session: {e}') from e
            logger.debug('created session %s for account %s',
                         user_session.short_token, account_id)
            return user_session
        raise Unavailable('Could not generate an unused session token')

    def find_by_token(self, token: str) -> domain.Session:
        """
        Get the session that owns ``token``.

        Raises
        ------
        :class:`NoSuchSession`

        """
        if not token:
            raise NoSuchSession('No token provided')
        try:
            with util.transaction(self._session_factory) as session:
                db_session: Optional[DBSession] = session.query(DBSession) \
                    .filter(DBSession.token == token) \
                    .first()
                if db_session is None:
                    raise NoSuchSession('No such session')
                return _to_domain(db_session)
        except SQLAlchemyError as e:
            raise Unavailable(f'Database error: {e}') from e

    def list_by_account(self, account_id: str) -> List[domain.Session]:
        """Get all live sessions of an account, oldest first."""
        key = util.account_key(account_id)
        try:
            with util.transaction(self._session_factory) as session:
                rows = session.query(DBSession) \
                    .filter(DBSession.account_id == key) \
                    .order_by(DBSession.issued_at, DBSession.session_id) \
                    .all()
                return [_to_domain(row) for row in rows]
        except SQLAlchemyError as e:
            raise Unavailable(f'Database error: {e}') from e

    def delete(self, user_session: domain.Session) -> None:
        """
        Delete a session and retire its token.

        Raises
        ------
        :class:`NoSuchSession`

        """
        try:
            with util.transaction(self._session_factory) as session:
                deleted = session.query(DBSession) \
                    .filter(DBSession.token == user_session.token) \
                    .delete(synchronize_session=False)
                if not deleted:
                    raise NoSuchSession('No such session')
                session.add(DBRevokedToken(
                    token_digest=tokens.digest(user_session.token),
                    revoked_at=util.now()
                ))
        except IntegrityError as e:
            # Another call retired the same token first.
            raise NoSuchSession('No such session') from e
        except SQLAlchemyError as e:
            raise Unavailable(f'Failed to delete session: {e}') from e
        logger.debug('deleted session %s', user_session.short_token)

    def delete_all_for_account(self, account_id: str,
                               db: Optional[DBTransaction] = None) -> int:
        """
        Delete every session belonging to an account.

        If ``db`` is passed, the deletions join that transaction and are
        committed (or rolled back) with whatever else the caller is doing.
        Otherwise they are committed together in a new transaction.

        Returns
        -------
        int
            Number of sessions deleted.

        """
        key = util.account_key(account_id)
        if db is not None:
            return _delete_all(db, key)
        try:
            with util.transaction(self._session_factory) as session:
                count = _delete_all(session, key)
        except SQLAlchemyError as e:
            raise Unavailable(f'Failed to delete sessions: {e}') from e
        logger.debug('deleted %i sessions for account %s', count, account_id)
        return count


def _retire(session: DBTransaction, db_session: DBSession) -> None:
    session.add(DBRevokedToken(token_digest=tokens.digest(db_session.token),
                               revoked_at=util.now()))
    session.delete(db_session)


def _delete_all(session: DBTransaction, account_key: int) -> int:
    rows = session.query(DBSession) \
        .filter(DBSession.account_id == account_key) \
        .all()
    for row in rows:
        _retire(session, row)
    return len(rows)
