"""SQLAlchemy engine and session factory for SQLite."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings


def make_engine(database_url: str | None = None) -> Engine:
    """Create an engine. In-memory SQLite shares one connection so every session sees the same data."""
    url = database_url or settings.database_url
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    return create_engine(url, echo=False)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(engine, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    """Create all tables defined in models.py."""
    from models import Base

    Base.metadata.create_all(engine)
