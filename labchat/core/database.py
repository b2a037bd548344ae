"""Database configuration and session management.

The calendar runs on any SQLAlchemy URL, but the default deployment is a
single SQLite file. For SQLite the engine is tuned the same way on every
connection:

    - **WAL (Write-Ahead Logging)**: readers are not blocked while the
      status sweep or a recurring series creation is writing.

    - **Foreign Keys**: disabled by default in SQLite. Enabled so that
      assignments cannot point at missing events or members.

    - **check_same_thread=False**: FastAPI may hand a session created in one
      thread to a handler running in another.
"""

from sqlalchemy import event as sa_event
from sqlmodel import Session, SQLModel, create_engine

from labchat.core.config import settings

is_sqlite = settings.database_url.startswith("sqlite")
connect_args = {"check_same_thread": False} if is_sqlite else {}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,  # Log SQL statements when DEBUG=true
)


def set_sqlite_pragma(dbapi_connection, connection_record):
    """Configure SQLite pragmas on each new connection.

    Pragmas are connection-level, so they must be set every time the pool
    opens a new connection.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if is_sqlite:
    sa_event.listen(engine, "connect", set_sqlite_pragma)


def create_db_and_tables():
    """Create all database tables."""
    # Import models so every table is registered on the metadata
    import labchat.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session
