"""Wires up an :class:`.AuthenticationService` from configuration."""

import logging
from typing import Any, Mapping, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from . import app_logging, config as default_config
from .accounts import AccountStore
from .passwords import PasswordHasher
from .service import AuthenticationService
from .sessions import SessionStore
from .util import create_all

logger = logging.getLogger(__name__)


def _get(config: Optional[Mapping[str, Any]], key: str) -> Any:
    if config is not None and key in config:
        return config[key]
    return getattr(default_config, key)


def _enable_sqlite_foreign_keys(dbapi_connection: Any,
                                connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def get_engine(config: Optional[Mapping[str, Any]] = None) -> Engine:
    """Create an engine for the configured database."""
    uri = _get(config, 'DATABASE_URI')
    if 'sqlite' in uri:
        args = {'check_same_thread': False, 'timeout': 30}
    else:
        args = {}
    engine = create_engine(uri, echo=_get(config, 'ECHO_SQL'),
                           connect_args=args)
    if engine.dialect.name == 'sqlite':
        event.listen(engine, 'connect', _enable_sqlite_foreign_keys)
    return engine


def get_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine,
                        expire_on_commit=False)


def create_service(config: Optional[Mapping[str, Any]] = None,
                   engine: Optional[Engine] = None,
                   create_tables: bool = False) -> AuthenticationService:
    """
    Build a service with its stores and hasher.

    Parameters
    ----------
    config : mapping
        Overrides for the settings in :mod:`sessionauth.config`.
    engine : :class:`Engine`
        Use this engine instead of creating one from ``DATABASE_URI``.
    create_tables : bool
        Create any missing tables before returning.

    """
    if engine is None:
        engine = get_engine(config)
    if create_tables:
        create_all(engine)
    session_factory = get_session_factory(engine)
    label = _get(config, 'DEFAULT_DEVICE_LABEL')
    sessions = SessionStore(session_factory,
                            token_bytes=_get(config, 'SESSION_TOKEN_BYTES'),
                            default_device_label=label)
    accounts = AccountStore(session_factory, sessions)
    hasher = PasswordHasher(_get(config, 'PASSWORD_HASH_ITERATIONS'))
    logger.debug('Created authentication service on %s', engine.url)
    return AuthenticationService(
        accounts, sessions, hasher,
        default_device_label=label,
        token_header=_get(config, 'AUTH_TOKEN_HEADER'),
        token_cookie=_get(config, 'AUTH_TOKEN_COOKIE')
    )


def configure_logging(config: Optional[Mapping[str, Any]] = None) \
        -> logging.Logger:
    """Install the root log handler at the configured level and format."""
    return app_logging.setup_logger(_get(config, 'LOGLEVEL'),
                                    json=_get(config, 'LOG_JSON'))
