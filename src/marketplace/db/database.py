"""Database connection and session management"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()

engine = None
SessionLocal = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on"""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_in_memory(database_url: str) -> bool:
    url = make_url(database_url)
    return (
        url.database in (None, "", ":memory:")
        or url.query.get("mode") == "memory"
    )


def init_database(database_url: str):
    """Initialize database connection"""
    global engine, SessionLocal

    logger.info("Initializing database connection")

    if make_url(database_url).get_backend_name() == "sqlite":
        sqlite_options = {"connect_args": {"check_same_thread": False}}
        if _is_in_memory(database_url):
            # An in-memory database lives only as long as its one connection
            sqlite_options["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=False, **sqlite_options)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(
            database_url,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            echo=False
        )

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    logger.info("Database connection initialized")

    return engine


def create_tables():
    """Create all tables"""
    # Register every mapped class on Base.metadata
    from marketplace.models import user, product, order  # noqa: F401

    logger.info("Creating database tables")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")


def get_db() -> Generator[Session, None, None]:
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
