# clup/db/session.py
# Engine construction and the request session factory.
# Postgres in deployment; SQLite for local runs and the test suite.

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from clup.core.config import settings


def make_engine(url: str, **kwargs) -> Engine:
    """
    Builds an engine for `url`.

    SQLite connections are shared with FastAPI's worker threads, and pysqlite's
    own BEGIN handling is replaced by SQLAlchemy's so that SAVEPOINTs work
    (rolled_back relies on them). Postgres engines ping pooled
    connections before use.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True, **kwargs)

    engine = create_engine(url, connect_args={"check_same_thread": False}, **kwargs)

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
