from typing import Iterator
from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from adventureconnect.config import Settings

Base = declarative_base()

def build_engine(settings: Settings) -> Engine:
    """Create the engine for ``settings.DATABASE_URL``.

    SQLite needs two adjustments to behave like the production database:
    connections are shared with FastAPI's threadpool, and pysqlite's own
    transaction handling is replaced so that every transaction starts with
    ``BEGIN IMMEDIATE``. That makes concurrent writers queue on the busy
    timeout instead of failing a lock upgrade, and lets SAVEPOINT work.
    """
    url = settings.DATABASE_URL
    if not url.startswith("sqlite"):
        return create_engine(url, echo=settings.DATABASE_ECHO, pool_pre_ping=True)

    engine = create_engine(
        url,
        echo=settings.DATABASE_ECHO,
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine

def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet"""
    # models must be imported so their tables are registered on Base.metadata
    from adventureconnect import models  # noqa: F401
    Base.metadata.create_all(bind=engine)

def get_db(request: Request) -> Iterator[Session]:
    """Yield a session from the application's session factory"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
