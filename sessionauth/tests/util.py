"""Testing helpers."""

import shutil
import tempfile
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.engine import Engine

from .. import factory, util
from ..service import AuthenticationService

FAST_ITERATIONS = 1000
"""Keeps password hashing cheap in tests."""


@contextmanager
def temporary_db(create: bool = True,
                 drop: bool = True) -> Generator[Engine, None, None]:
    """Provide a throwaway sqlite database in a temporary directory."""
    db_path = tempfile.mkdtemp()
    engine = factory.get_engine({
        'DATABASE_URI': f'sqlite:///{db_path}/test.db',
        'ECHO_SQL': False
    })
    if create:
        util.create_all(engine)
    try:
        yield engine
    finally:
        if drop:
            util.drop_all(engine)
        engine.dispose()
        shutil.rmtree(db_path)


class TemporaryServiceMixin(object):
    """Gives each test a fresh database and service."""

    def setUp(self) -> None:
        """Set up the database."""
        self.db_path = tempfile.mkdtemp()
        self.engine = factory.get_engine({
            'DATABASE_URI': f'sqlite:///{self.db_path}/test.db',
            'ECHO_SQL': False
        })
        self.service: AuthenticationService = factory.create_service(
            {'PASSWORD_HASH_ITERATIONS': FAST_ITERATIONS},
            engine=self.engine,
            create_tables=True
        )
        self.accounts = self.service.accounts
        self.sessions = self.service.sessions

    def tearDown(self) -> None:
        self.engine.dispose()
        shutil.rmtree(self.db_path)
