# flock/sa/database.py
from contextlib import contextmanager
from typing import Any, Dict, Iterator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool

from flock.sa.models import Base


def engine_options(url: str) -> Dict[str, Any]:
    """create_engine kwargs for a short lived process.

    Lambda containers are frozen between invocations, so no connection is
    pooled; postgres connections are pinged before use.
    """
    options: Dict[str, Any] = {'poolclass': NullPool}
    if url.startswith('sqlite'):
        options['connect_args'] = {'check_same_thread': False}
    else:
        options['pool_pre_ping'] = True
    return options


class Database:
    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine = create_engine(url, **{**engine_options(url), **engine_kwargs})
        self._sessions = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    @classmethod
    def from_settings(cls, settings) -> 'Database':
        return cls(settings.database_url)

    def get_session(self) -> Session:
        return self._sessions()

    @contextmanager
    def invocation(self) -> Iterator[Session]:
        """Session for one handler or command run.

        Repositories commit per item, so nothing is committed here. The
        session is closed and the engine disposed on the way out.
        """
        session = self._sessions()
        try:
            yield session
        finally:
            session.close()
            self.dispose()

    def create_tables(self) -> None:
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
