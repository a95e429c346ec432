"""Database models."""

from sqlalchemy import Column, ForeignKey, Integer, String, text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class DBAccount(Base):  # type: ignore
    """
    User accounts.

    +--------------+--------------+------+-----+---------+----------------+
    | Field        | Type         | Null | Key | Default | Extra          |
    +--------------+--------------+------+-----+---------+----------------+
    | account_id   | int(11)      | NO   | PRI | NULL    | auto_increment |
    | display_name | varchar(64)  | NO   | UNI |         |                |
    | email        | varchar(255) | NO   | UNI |         |                |
    | password_enc | varchar(255) | NO   |     |         |                |
    | joined_date  | int(11)      | NO   |     | 0       |                |
    +--------------+--------------+------+-----+---------+----------------+

    The unique keys on ``display_name`` and ``email`` are what actually keep
    two concurrent registrations from both succeeding.
    """

    __tablename__ = 'accounts'

    account_id = Column(Integer, primary_key=True, autoincrement=True)
    display_name = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_enc = Column(String(255), nullable=False)
    joined_date = Column(Integer, nullable=False, server_default=text("'0'"))

    sessions = relationship('DBSession', back_populates='account',
                            cascade='all, delete-orphan',
                            passive_deletes=True)


class DBSession(Base):  # type: ignore
    """
    Login sessions, one per device.

    +--------------+--------------+------+-----+----------------+----------------+
    | Field        | Type         | Null | Key | Default        | Extra          |
    +--------------+--------------+------+-----+----------------+----------------+
    | session_id   | int(11)      | NO   | PRI | NULL           | auto_increment |
    | token        | varchar(64)  | NO   | UNI |                |                |
    | account_id   | int(11)      | NO   | MUL |                |                |
    | device_label | varchar(255) | NO   |     | Unknown device |                |
    | issued_at    | int(11)      | NO   | MUL | 0              |                |
    +--------------+--------------+------+-----+----------------+----------------+
    """

    __tablename__ = 'sessions'

    session_id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(64), nullable=False, unique=True, index=True)
    account_id = Column(
        ForeignKey('accounts.account_id', ondelete='CASCADE'),
        nullable=False, index=True
    )
    device_label = Column(String(255), nullable=False,
                          server_default=text("'Unknown device'"))
    issued_at = Column(Integer, nullable=False, index=True,
                       server_default=text("'0'"))

    account = relationship('DBAccount', back_populates='sessions')


class DBRevokedToken(Base):  # type: ignore
    """
    Digests of tokens that belonged to sessions that have been deleted.

    Only the SHA-256 hex digest is kept; the bearer value itself is gone
    once its session row is deleted.
    """

    __tablename__ = 'revoked_tokens'

    token_digest = Column(String(64), primary_key=True)
    revoked_at = Column(Integer, nullable=False, server_default=text("'0'"))
