"""Exceptions."""


class InvalidInput(RuntimeError):
    """A display name, email or password could not be accepted."""


class Conflict(RuntimeError):
    """An account with the same name or email already exists."""


class AuthenticationFailed(RuntimeError):
    """Failed to authenticate user with provided credentials."""


class Forbidden(RuntimeError):
    """Authenticated, but not permitted to perform the requested change."""


class Unauthenticated(RuntimeError):
    """The presented token does not belong to a live session."""


class NoSuchUser(RuntimeError):
    """User does not exist."""


class NoSuchSession(RuntimeError):
    """Failed to locate a session in the session store."""


class Unavailable(RuntimeError):
    """The database could not be reached, or refused the operation."""


class HashingFailed(RuntimeError):
    """Could not compute a password hash."""
