"""Defines accounts and sessions as they are seen outside of the database."""

from typing import Any, Optional, NamedTuple, Union
from datetime import datetime

import dateutil.parser

DEFAULT_DEVICE_LABEL = 'Unknown device'


class Account(NamedTuple):
    """A registered user. The password hash is deliberately not included."""

    display_name: str
    """Canonical, URL-safe name. Unique across all accounts."""

    email: str
    """The user's contact e-mail address."""

    account_id: Optional[str] = None
    """Unique identifier for the account. If ``None``, it does not exist."""

    joined_at: Optional[datetime] = None
    """When the account was registered."""


class Session(NamedTuple):
    """A login session for one account on one device."""

    token: str
    """Opaque bearer credential for the session."""

    account_id: str
    """The account that logged in."""

    issued_at: datetime
    """When the session was created."""

    device_label: str = DEFAULT_DEVICE_LABEL
    """Free-form description of the client device."""

    @property
    def short_token(self) -> str:
        """A prefix of the token that is safe to put in logs."""
        return f'{self.token[:6]}...'


class LoginResult(NamedTuple):
    """Returned from a successful login."""

    account: Account
    session: Session


_NESTED = {'account': Account, 'session': Session}
_TIMESTAMPS = ('joined_at', 'issued_at')


def to_dict(obj: Union[Account, Session, LoginResult]) -> dict:
    """Cast an account, session or login result to JSON-ready dicts."""
    data = {}
    for key, value in obj._asdict().items():
        if key in _NESTED:
            value = to_dict(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        data[key] = value
    return data


def from_dict(cls: type, data: dict) -> Any:
    """
    Rebuild an :class:`Account`, :class:`Session` or :class:`LoginResult`.

    This is the inverse of :func:`to_dict`. Fields missing from ``data`` take
    their defaults.
    """
    values = {}
    for key in cls._fields:
        if key not in data:
            continue
        value = data[key]
        if key in _NESTED and isinstance(value, dict):
            value = from_dict(_NESTED[key], value)
        elif key in _TIMESTAMPS and isinstance(value, str):
            value = dateutil.parser.parse(value)
        values[key] = value
    return cls(**values)
