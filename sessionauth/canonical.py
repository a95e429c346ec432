"""
Canonical forms for display names and e-mail addresses.

A display name typed by a user is turned into a lower-case, URL-safe slug
that is used both as the account's public name and as its uniqueness key.
The transformation is deterministic: the same input always gives the same
slug, so "Alice  Smith" and "alice smith" collide.
"""

import re
import unicodedata

from .exceptions import InvalidInput

MAX_DISPLAY_NAME_LENGTH = 64

# Generic and sub delimiters from RFC 3986, plus the escape character.
RESERVED = set(":/?#[]@!$&'()*+,;=%")

WHITESPACE = re.compile(r'\s+')


def url_formatted(display_name: str) -> str:
    """
    Canonicalize a display name.

    Raises
    ------
    :class:`InvalidInput`
        The result is empty, too long, or contains reserved or control
        characters.

    """
    if not isinstance(display_name, str):
        raise InvalidInput('Display name must be a string')
    name = unicodedata.normalize('NFKC', display_name).strip().lower()
    name = WHITESPACE.sub('-', name)
    if not name:
        raise InvalidInput('Display name is empty')
    if len(name) > MAX_DISPLAY_NAME_LENGTH:
        raise InvalidInput('Display name is too long')
    for char in name:
        if char in RESERVED:
            raise InvalidInput(f'Display name may not contain {char!r}')
        if unicodedata.category(char).startswith('C'):
            raise InvalidInput('Display name contains control characters')
    return name


def normalize_email(email: str) -> str:
    """Trim and lower-case an e-mail address, and check it has a domain."""
    if not isinstance(email, str):
        raise InvalidInput('Email must be a string')
    email = email.strip().lower()
    local, _, domain = email.rpartition('@')
    if not local or not domain or WHITESPACE.search(email):
        raise InvalidInput('Not a valid email address')
    return email
