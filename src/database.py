from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from config import settings


def build_engine(url: str, **kwargs):
    """Create an engine; SQLite connections get real SAVEPOINT support."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(url, echo=settings.DB_ECHO, **kwargs)
        enable_sqlite_savepoints(engine)
        return engine
    return create_engine(url, echo=settings.DB_ECHO, pool_pre_ping=settings.DB_POOL_PRE_PING, **kwargs)


def enable_sqlite_savepoints(engine) -> None:
    # pysqlite starts transactions lazily and breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
