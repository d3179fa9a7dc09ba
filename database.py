from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import get_settings


def _is_memory_url(url: str) -> bool:
    return url in {"sqlite://", "sqlite:///:memory:"}


def create_db_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    options: dict[str, object] = {"connect_args": {"check_same_thread": False}}
    if _is_memory_url(url):
        # In-memory databases live on a single shared connection.
        options["poolclass"] = StaticPool
    eng = create_engine(url, **options)
    event.listen(eng, "connect", _sqlite_pragmas(wal=not _is_memory_url(url)))
    return eng


def _sqlite_pragmas(wal: bool):
    def _on_connect(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        if wal:
            cursor.execute("PRAGMA journal_mode=WAL;")
        # Deleting a user cascades to their income, expense and budget rows.
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.close()

    return _on_connect


engine = create_db_engine(get_settings().database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


def get_db() -> Iterator[Session]:
    """Request-scoped session; services commit their own writes."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
