"""Functions for working with session tokens on requests."""

import hashlib
import secrets
from typing import Mapping, Optional
from urllib.parse import unquote

DEFAULT_TOKEN_BYTES = 32
DEFAULT_HEADER = 'content-authtoken'
DEFAULT_COOKIE = 'authtoken'


def generate_token(nbytes: int = DEFAULT_TOKEN_BYTES) -> str:
    """Generate a fresh, URL-safe bearer token."""
    return secrets.token_urlsafe(nbytes)


def digest(token: str) -> str:
    """SHA-256 hex digest of a token, for the revocation ledger."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def select_token(header_value: Optional[str] = None,
                 cookie_value: Optional[str] = None) -> Optional[str]:
    """
    Pick the one token to honor for a request.

    The header always wins. The cookie is only looked at when the header is
    absent or blank, and its value is URL-decoded first since browsers send it
    percent-encoded.
    """
    header = (header_value or '').strip()
    if header:
        return header
    cookie = unquote(cookie_value or '').strip()
    if cookie:
        return cookie
    return None


def from_request(headers: Mapping[str, str], cookies: Mapping[str, str],
                 header_name: str = DEFAULT_HEADER,
                 cookie_name: str = DEFAULT_COOKIE) -> Optional[str]:
    """Get the token from request headers and cookies, header first."""
    return select_token(headers.get(header_name), cookies.get(cookie_name))
