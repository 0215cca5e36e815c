from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings
from functools import lru_cache, wraps
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./aurora_events.db"
    log_level: str = "INFO"
    # Opt-in transition validation; the default lets any status follow any other
    strict_transitions: bool = False

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()

# SQLite needs check_same_thread=False: FastAPI serves requests from a thread pool
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
    pool_pre_ping=True
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """
    FastAPI dependency: one session per request

    Managers commit through @transactional; the notify endpoint, which calls
    notification_service directly, commits itself. The session is closed
    when the request ends.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def transactional(func):
    """
    Commit a manager mutation, or roll all of it back

    Wraps the writing methods of EventManager, EntrantManager and
    UserManager. For an entrant change, the unit covers taking the event
    row lock (core/locks.py), rebuilding the tracker from EntrantRecord
    rows, applying the transition, mirroring it to its row and adding the
    EventLog entry. Either all of that is committed or none of it is, so
    the stored rows never disagree with the tracker the request saw.

    On exception the session is rolled back, the failure is logged at
    ERROR and the exception is re-raised for the router to map. Checks
    that should not count as failed transactions (negative lottery slots)
    run before the decorated method is entered.

    The Session must be the first positional argument or the `db` keyword.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        db = None
        if args and isinstance(args[0], Session):
            db = args[0]
        elif 'db' in kwargs:
            db = kwargs['db']

        if db is None:
            raise ValueError(
                f"@transactional requires 'db: Session' as first argument, "
                f"but got args={args}, kwargs={kwargs}"
            )

        try:
            result = func(*args, **kwargs)
            db.commit()
            return result
        except Exception as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            db.rollback()
            raise

    return wrapper
