"""
Registration, login, session resolution and revocation.

:class:`AuthenticationService` is what a routing layer talks to. It holds no
global state: the account store, session store and password hasher are all
passed in, so it can be built against a test database or against mocks.
"""

import logging
from typing import List, Mapping, Optional

from . import canonical, domain, tokens
from .accounts import AccountStore
from .exceptions import AuthenticationFailed, Forbidden, InvalidInput, \
    Conflict, NoSuchSession, NoSuchUser, Unauthenticated
from .passwords import PasswordHasher
from .sessions import SessionStore

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid username or password'


class AuthenticationService(object):
    """Orchestrates the account store, session store and password hasher."""

    def __init__(self, accounts: AccountStore, sessions: SessionStore,
                 hasher: PasswordHasher,
                 default_device_label: str = domain.DEFAULT_DEVICE_LABEL,
                 token_header: str = tokens.DEFAULT_HEADER,
                 token_cookie: str = tokens.DEFAULT_COOKIE) -> None:
        self.accounts = accounts
        self.sessions = sessions
        self.hasher = hasher
        self.default_device_label = default_device_label
        self.token_header = token_header
        self.token_cookie = token_cookie

    def _hash_password(self, password: str) -> str:
        if not isinstance(password, str) or not password:
            raise InvalidInput('Password is required')
        return self.hasher.hash(password)

    def register(self, display_name: str, email: str,
                 password: str) -> domain.Account:
        """
        Create a new account. No session is issued.

        Parameters
        ----------
        display_name : str
            As entered by the user; canonicalized before it is stored.
        email : str
        password : str

        Returns
        -------
        :class:`.domain.Account`

        Raises
        ------
        :class:`InvalidInput`
            The display name, email or password is not acceptable.
        :class:`Conflict`
            The name or email is already taken.
        :class:`Unavailable`

        """
        url_name = canonical.url_formatted(display_name)
        email = canonical.normalize_email(email)

        # Only gives a friendlier error early; the insert below is what
        # actually guarantees uniqueness.
        if self.accounts.exists(display_name, email):
            raise Conflict('duplicate login')

        password_hash = self._hash_password(password)
        account = self.accounts.create(url_name, email, password_hash)
        logger.info('Registered account %s', account.account_id)
        return account

    def _resolve_login(self, login: str) -> domain.Account:
        """Find an account by email address or display name."""
        if not isinstance(login, str) or not login.strip():
            raise NoSuchUser('No login provided')
        # Display names may not contain @, so anything with one is an email.
        if '@' in login:
            return self.accounts.find_by_email(login.strip().lower())
        try:
            url_name = canonical.url_formatted(login)
        except InvalidInput as e:
            raise NoSuchUser('User does not exist') from e
        return self.accounts.find_by_display_name(url_name)

    def authenticate(self, login: str, password: str) -> domain.Account:
        """
        Validate login/password without creating a session.

        Users may log in with either their display name or their email.
        Every way this can fail, unknown login or wrong password, raises the
        same :class:`AuthenticationFailed` with the same message.
        """
        try:
            account = self._resolve_login(login)
        except NoSuchUser as e:
            self.hasher.dummy_verify(password or '')
            logger.debug('Login failed: no such user')
            raise AuthenticationFailed(INVALID_CREDENTIALS) from e
        stored = self.accounts.password_hash_for(account.account_id)
        if not self.hasher.verify(password or '', stored):
            logger.debug('Login failed: bad password for %s',
                         account.account_id)
            raise AuthenticationFailed(INVALID_CREDENTIALS)
        return account

    def login(self, login: str, password: str,
              device_label: Optional[str] = None) -> domain.LoginResult:
        """
        Verify credentials and issue a new session.

        Returns
        -------
        :class:`.domain.LoginResult`
            The account and its new session. Delivering the token to the
            client is up to the caller.

        Raises
        ------
        :class:`AuthenticationFailed`
        :class:`Unavailable`

        """
        account = self.authenticate(login, password)
        try:
            session = self.sessions.create(
                account.account_id, device_label or self.default_device_label
            )
        except NoSuchUser as e:
            # Deleted between the password check and the session insert.
            raise AuthenticationFailed(INVALID_CREDENTIALS) from e
        logger.info('Account %s logged in on %s', account.account_id,
                    session.device_label)
        return domain.LoginResult(account=account, session=session)

    def list_sessions(self, account_id: str) -> List[domain.Session]:
        """All live sessions of an account, oldest first."""
        return self.sessions.list_by_account(account_id)

    def resolve_session(self, token: Optional[str]) -> domain.Account:
        """
        Get the account that owns a session token.

        Raises
        ------
        :class:`Unauthenticated`
            No live session has this token.

        """
        try:
            session = self.sessions.find_by_token(token or '')
            return self.accounts.get(session.account_id)
        except (NoSuchSession, NoSuchUser) as e:
            raise Unauthenticated('Not logged in') from e

    def is_authenticated(self, token: Optional[str]) -> bool:
        """Determine whether a token belongs to a live session."""
        try:
            self.resolve_session(token)
        except Unauthenticated:
            return False
        return True

    def logout(self, token: Optional[str]) -> None:
        """
        Delete the session that owns ``token``.

        Raises
        ------
        :class:`NoSuchSession`

        """
        try:
            session = self.sessions.find_by_token(token or '')
            self.sessions.delete(session)
        except NoSuchSession as e:
            raise NoSuchSession('no such session') from e
        logger.info('Account %s logged out of %s', session.account_id,
                    session.short_token)

    def token_from_request(self, headers: Mapping[str, str],
                           cookies: Mapping[str, str]) -> Optional[str]:
        """Pick the session token out of request headers and cookies."""
        return tokens.from_request(headers, cookies, self.token_header,
                                   self.token_cookie)

    def logout_request(self, header_token: Optional[str] = None,
                       cookie_token: Optional[str] = None) -> None:
        """
        Log out using whichever token a request carried.

        The header is used when present; the cookie only when it is not.
        """
        token = tokens.select_token(header_token, cookie_token)
        if token is None:
            raise NoSuchSession('No token provided')
        self.logout(token)

    def delete_account(self, account_id: str, login: str,
                       password: str) -> None:
        """
        Delete the caller's account and every one of its sessions.

        A session token alone is not enough: the caller must also send the
        login and password of the account, and they must belong to the
        account of the session that made the request.

        Parameters
        ----------
        account_id : str
            The account of the authenticated session making the request.
        login : str
        password : str

        Raises
        ------
        :class:`AuthenticationFailed`
            The credentials are wrong.
        :class:`Forbidden`
            The credentials belong to some other account.
        :class:`Unavailable`

        """
        account = self.authenticate(login, password)
        if account.account_id != str(account_id):
            logger.warning('Account %s tried to delete account %s',
                           account_id, account.account_id)
            raise Forbidden("Cannot delete someone else's account")
        try:
            self.accounts.delete(account.account_id)
        except NoSuchUser as e:
            raise AuthenticationFailed(INVALID_CREDENTIALS) from e

    def reset_password(self, account_id: str, new_password: str) -> None:
        """Set a new password for an account. Existing sessions survive."""
        self.accounts.reset_password(account_id,
                                     self._hash_password(new_password))

    def change_password(self, login: str, password: str,
                        new_password: str) -> None:
        """Set a new password after checking the current one."""
        account = self.authenticate(login, password)
        self.reset_password(account.account_id, new_password)
