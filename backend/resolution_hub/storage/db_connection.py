from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from resolution_hub.core.config import settings
from resolution_hub.storage.db_models import Base
from resolution_hub.utils.logger import get_logger

logger = get_logger(__name__)


def _build_engine(database_url: str, **kwargs):
    if database_url.startswith("sqlite"):
        # One connection may be used from FastAPI's worker threads
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_size", 5)
        kwargs.setdefault("max_overflow", 10)
    return create_engine(database_url, echo=settings.DB_ECHO, **kwargs)


engine = _build_engine(settings.DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def configure_engine(database_url: str, **kwargs):
    """Point the session factory at another database (tests use in-memory SQLite)."""
    global engine
    engine = _build_engine(database_url, **kwargs)
    SessionLocal.configure(bind=engine)
    logger.info(f"🗄️ DB: session factory bound to {engine.url.render_as_string(hide_password=True)}")
    return engine


def init_db():
    """Create any missing tables."""
    Base.metadata.create_all(bind=engine)
    logger.info("🗄️ DB: tables ready")


def get_db_session():
    """
    Returns a new database session.
    Callers close it when done.
    """
    return SessionLocal()
