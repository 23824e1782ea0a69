from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings

engine = create_engine(settings.database_url, pool_pre_ping=True, future=True)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
Base = declarative_base()


def _is_sqlite(dbapi_connection) -> bool:
    return type(dbapi_connection).__module__.startswith("sqlite3")


@event.listens_for(Engine, "connect")
def _configure_sqlite_connection(dbapi_connection, connection_record):
    if not _is_sqlite(dbapi_connection):
        return
    # pysqlite's implicit BEGIN breaks SAVEPOINT; BEGIN is emitted in _sqlite_begin instead
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    # ON DELETE CASCADE on the link table needs this per connection
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


@event.listens_for(Engine, "begin")
def _sqlite_begin(conn):
    if conn.dialect.name == "sqlite":
        conn.exec_driver_sql("BEGIN")


def init_db(bind=None):
    """Create all tables that don't exist yet. Safe to call repeatedly."""
    from . import models  # noqa: F401  registers the tables on Base.metadata

    Base.metadata.create_all(bind=bind or engine)
