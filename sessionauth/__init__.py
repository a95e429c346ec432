"""
Account registration, password login and per-device sessions.

This package is the authentication core of the application. It knows how to
register accounts, check passwords, issue and look up session tokens, and
revoke them. It does not know about HTTP: a routing layer decodes requests,
pulls tokens out of headers or cookies, and calls into
:class:`.AuthenticationService`.

Quick start
-----------

.. code-block:: python

   from sessionauth import factory

   auth = factory.create_service({'DATABASE_URI': 'sqlite:///auth.db'},
                                 create_tables=True)
   auth.register('Alice', 'alice@example.com', 'correct horse')
   result = auth.login('alice', 'correct horse', device_label='laptop')
   account = auth.resolve_session(result.session.token)
   auth.logout(result.session.token)

All failures are raised as the exceptions in :mod:`sessionauth.exceptions`.
"""

from .domain import Account, Session, LoginResult
from .passwords import PasswordHasher
from .accounts import AccountStore
from .sessions import SessionStore
from .service import AuthenticationService
