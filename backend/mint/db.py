"""Database handle shared by the core components.

A ``Database`` is built once by the process bootstrap (``create_app`` or the seed
script) and passed to every service constructor; nothing here is module-global.
"""
from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event, insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mint.models.authz import Base

log = logging.getLogger(__name__)


class Database:
    def __init__(self, url: str, echo: bool = False):
        self.url = url
        if url.endswith(':memory:'):
            # Ensure a single shared in-memory SQLite database across all sessions
            self.engine = create_engine(
                url,
                echo=echo,
                future=True,
                connect_args={'check_same_thread': False},
                poolclass=StaticPool,
            )
        elif url.startswith('sqlite'):
            self.engine = create_engine(url, echo=echo, future=True, connect_args={'check_same_thread': False})
        else:
            self.engine = create_engine(url, echo=echo, future=True, pool_pre_ping=True)
        if self.engine.dialect.name == 'sqlite':
            event.listen(self.engine, 'connect', _sqlite_enable_foreign_keys)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False, autoflush=False)

    def session(self) -> Session:
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Unit of work: commit on success, rollback on any error, always close."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self):
        # Import every model module so all tables are registered on the metadata
        import mint.models.profile  # noqa: F401
        import mint.models.audit  # noqa: F401
        Base.metadata.create_all(self.engine)

    def dispose(self):
        self.engine.dispose()


def _sqlite_enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def insert_ignore(session: Session, model, **values) -> bool:
    """Insert a row; when a unique constraint already holds the key, do nothing.

    Returns True when a row was written. Concurrent callers with the same key
    never produce duplicates: the store's uniqueness constraint decides.
    """
    dialect = session.get_bind().dialect.name
    if dialect == 'postgresql':
        result = session.execute(pg_insert(model).values(**values).on_conflict_do_nothing())
        return bool(result.rowcount)
    if dialect == 'sqlite':
        result = session.execute(sqlite_insert(model).values(**values).on_conflict_do_nothing())
        return bool(result.rowcount)
    try:
        with session.begin_nested():
            session.execute(insert(model).values(**values))
        return True
    except IntegrityError:
        log.debug('insert_ignore: %s %s already present', model.__tablename__, values)
        return False


__all__ = ['Database', 'insert_ignore']
