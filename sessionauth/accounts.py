"""Provide methods for working with user accounts."""

import logging
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from . import canonical, domain, util
from .exceptions import Conflict, InvalidInput, NoSuchUser, Unavailable
from .models import DBAccount
from .sessions import SessionStore

logger = logging.getLogger(__name__)


def _to_domain(db_account: DBAccount) -> domain.Account:
    return domain.Account(
        account_id=str(db_account.account_id),
        display_name=db_account.display_name,
        email=db_account.email,
        joined_at=util.from_epoch(db_account.joined_date)
    )


class AccountStore(object):
    """
    Accounts in the database.

    Deleting an account goes through the :class:`.SessionStore` so that the
    account's sessions disappear in the same transaction as the account.
    """

    def __init__(self, session_factory: sessionmaker,
                 sessions: SessionStore) -> None:
        self._session_factory = session_factory
        self._sessions = sessions

    def _find(self, **criteria: Any) -> domain.Account:
        try:
            with util.transaction(self._session_factory) as session:
                db_account: Optional[DBAccount] = session.query(DBAccount) \
                    .filter_by(**criteria) \
                    .first()
                if db_account is None:
                    raise NoSuchUser('User does not exist')
                return _to_domain(db_account)
        except SQLAlchemyError as e:
            raise Unavailable(f'Database error: {e}') from e

    def find_by_display_name(self, display_name: str) -> domain.Account:
        """Get an account by its canonical display name."""
        return self._find(display_name=display_name)

    def find_by_email(self, email: str) -> domain.Account:
        """Get an account by its (normalized) e-mail address."""
        return self._find(email=email)

    def get(self, account_id: str) -> domain.Account:
        """Get an account by ID."""
        return self._find(account_id=util.account_key(account_id))

    def exists(self, display_name: str, email: str) -> bool:
        """
        Determine whether registering these details would duplicate a login.

        True if either the canonical form of ``display_name`` or ``email`` is
        already used by an account.

        Parameters
        ----------
        display_name : str
            The display name as entered, before canonicalization.
        email : str

        Returns
        -------
        bool

        """
        clauses = [DBAccount.email == email.strip().lower()]
        try:
            clauses.append(
                DBAccount.display_name == canonical.url_formatted(display_name)
            )
        except InvalidInput:
            pass    # Can't collide with a name that can't be stored.
        try:
            with util.transaction(self._session_factory) as session:
                data = session.query(DBAccount.account_id) \
                    .filter(or_(*clauses)) \
                    .first()
                return data is not None
        except SQLAlchemyError as e:
            raise Unavailable(f'Database error: {e}') from e

    def create(self, display_name: str, email: str,
               password_hash: str) -> domain.Account:
        """
        Create a new account.

        The insert is the only thing that decides whether the name is free:
        the unique keys on ``display_name`` and ``email`` reject the loser of
        two concurrent registrations.

        Parameters
        ----------
        display_name : str
            Canonical display name (see :func:`.canonical.url_formatted`).
        email : str
        password_hash : str
            Output of :meth:`.PasswordHasher.hash`.

        Returns
        -------
        :class:`.domain.Account`

        Raises
        ------
        :class:`Conflict`
            An account with the same name or email already exists.
        :class:`Unavailable`

        """
        try:
            with util.transaction(self._session_factory) as session:
                db_account = DBAccount(
                    display_name=display_name,
                    email=email,
                    password_enc=password_hash,
                    joined_date=util.now()
                )
                session.add(db_account)
                session.flush()
                account = _to_domain(db_account)
        except IntegrityError as e:
            logger.info('Lost registration race for %s', display_name)
            raise Conflict('name already exists') from e
        except SQLAlchemyError as e:
            raise Unavailable(f'Could not create user: {e}') from e
        logger.info('Created account %s', account.account_id)
        return account

    def password_hash_for(self, account_id: str) -> str:
        """Get the stored password hash for an account."""
        key = util.account_key(account_id)
        try:
            with util.transaction(self._session_factory) as session:
                db_account = session.get(DBAccount, key)
                if db_account is None:
                    raise NoSuchUser('User does not exist')
                return str(db_account.password_enc)
        except SQLAlchemyError as e:
            raise Unavailable(f'Database error: {e}') from e

    def reset_password(self, account_id: str, password_hash: str) -> None:
        """
        Replace the password hash of an existing account.

        Raises
        ------
        :class:`NoSuchUser`
        :class:`Unavailable`

        """
        key = util.account_key(account_id)
        try:
            with util.transaction(self._session_factory) as session:
                db_account = session.get(DBAccount, key)
                if db_account is None:
                    raise NoSuchUser('User does not exist')
                db_account.password_enc = password_hash
        except SQLAlchemyError as e:
            raise Unavailable(f'Could not reset password: {e}') from e
        logger.info('Reset password for account %s', account_id)

    def delete(self, account_id: str) -> None:
        """
        Delete an account and all of its sessions in one transaction.

        Raises
        ------
        :class:`NoSuchUser`
        :class:`Unavailable`

        """
        key = util.account_key(account_id)
        try:
            with util.transaction(self._session_factory) as session:
                db_account = session.get(DBAccount, key)
                if db_account is None:
                    raise NoSuchUser('User does not exist')
                count = self._sessions.delete_all_for_account(account_id,
                                                              db=session)
                session.delete(db_account)
        except SQLAlchemyError as e:
            raise Unavailable(f'Could not delete user: {e}') from e
        logger.info('Deleted account %s and %i sessions', account_id, count)
