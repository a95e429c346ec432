"""Configuration for the authentication core, read from the environment."""

import os

DATABASE_URI = os.environ.get('SESSIONAUTH_DATABASE_URI',
                              'sqlite:///sessionauth.db')
"""SQLAlchemy URI for the account and session tables."""

ECHO_SQL = os.environ.get('SESSIONAUTH_ECHO_SQL', '0') == '1'

PASSWORD_HASH_ITERATIONS = int(os.environ.get('PASSWORD_HASH_ITERATIONS',
                                              '600000'))
"""PBKDF2 work factor for newly hashed passwords."""

SESSION_TOKEN_BYTES = int(os.environ.get('SESSION_TOKEN_BYTES', '32'))
"""Bytes of randomness in each session token."""

DEFAULT_DEVICE_LABEL = os.environ.get('DEFAULT_DEVICE_LABEL',
                                      'Unknown device')

AUTH_TOKEN_HEADER = os.environ.get('AUTH_TOKEN_HEADER', 'content-authtoken')
"""Request header that carries a session token. Checked before the cookie."""

AUTH_TOKEN_COOKIE = os.environ.get('AUTH_TOKEN_COOKIE', 'authtoken')

LOGLEVEL = os.environ.get('LOGLEVEL', 'INFO')
LOG_JSON = os.environ.get('LOG_JSON', '1') == '1'
