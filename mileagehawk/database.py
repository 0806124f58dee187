from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from mileagehawk.config import get_settings
import logging
import os

logger = logging.getLogger(__name__)
settings = get_settings()

db_url = settings.database_url
is_sqlite = db_url.startswith("sqlite")

engine = create_engine(
    db_url,
    connect_args={"check_same_thread": False} if is_sqlite else {},
)


# Foreign keys are off by default in SQLite; ON DELETE CASCADE needs them.
if is_sqlite:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables. Used for SQLite deployments and local development."""
    # Import models so they register on Base.metadata
    import mileagehawk.models  # noqa: F401

    if is_sqlite and engine.url.database and engine.url.database != ":memory:":
        os.makedirs(os.path.dirname(os.path.abspath(engine.url.database)), exist_ok=True)

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables ensured ({len(Base.metadata.tables)} tables)")
