"""
Database engine and session management

The Database object is created by the application factory and handed to
request handlers through the get_db dependency.
"""
import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models"""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine and session factory for one database URL"""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        connect_args = {}
        engine_kwargs = {}

        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            # In-memory databases must share a single connection
            if url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool

        self.engine: Engine = create_engine(
            url, echo=echo, connect_args=connect_args, **engine_kwargs
        )

        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    def create_all(self) -> None:
        """Create all tables that do not exist yet"""
        # Import models so they register with Base.metadata
        from roadmap_tracker import models  # noqa: F401

        Base.metadata.create_all(self.engine)
        logger.info("Database schema ready")

    def drop_all(self) -> None:
        from roadmap_tracker import models  # noqa: F401

        Base.metadata.drop_all(self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connections closed")


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency yielding a session bound to the app's database"""
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
