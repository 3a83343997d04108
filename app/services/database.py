from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.config.settings import settings
from app.core.exceptions.exceptions import DatabaseConnectionError


def _build_engine(url: str):
    if url in ("sqlite://", "sqlite:///:memory:"):
        # single shared connection so the in-memory database survives across threads
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False}, echo=False)
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        echo=False
    )


engine = _build_engine(settings.database_url)

# session factory (scoped session if multithreaded or async)
SessionLocal = scoped_session(sessionmaker(autocommit=False, autoflush=False, bind=engine))


def init_db():
    """Create missing tables (used for sqlite/dev; production runs alembic)."""
    # models must be imported so their tables register in the metadata
    from app.models import integration_metric, integration_monitor  # noqa: F401

    try:
        SQLModel.metadata.create_all(bind=engine)
    except OperationalError as e:
        raise DatabaseConnectionError(settings.DB_NAME or settings.database_url) from e


def get_db():
    """
    generates a new database session.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
