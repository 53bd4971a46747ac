"""Database engine and session helpers."""
from typing import Iterator

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from chatapp.config import settings


def make_engine(database_url: str):
    """Create an engine; SQLite URLs get the flags FastAPI's threadpool needs."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


engine = make_engine(settings.DATABASE_URL)


def init_db(bind=None) -> None:
    """Create all tables registered on SQLModel metadata."""
    # Import models so their tables are registered before create_all
    from chatapp.models import chat, user  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_session() -> Iterator[Session]:
    with Session(engine) as session:
        yield session
