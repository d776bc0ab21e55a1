import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from enrollment_service.config import DATABASE_URL
from enrollment_service.errors import PersistenceError
from enrollment_service.models import Base

logger = logging.getLogger(__name__)


def make_engine(url: str, **kwargs):
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":
        # sqlite ignores ON DELETE CASCADE unless foreign keys are switched on
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def transaction(db: Session):
    """
    Runs one unit of work: commit when the block finishes, rollback when it raises.

    Domain errors raised inside the block are re-raised unchanged after the
    rollback. Storage failures are wrapped in PersistenceError.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Transaction rolled back after a storage failure")
        raise PersistenceError(f"Database error: {e}") from e
    except Exception:
        db.rollback()
        raise
