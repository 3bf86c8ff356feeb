from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()

# Largest value an INTEGER primary key column can hold on Postgres.
MAX_ID = 2**31 - 1


def build_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for ``database_url``.

    Postgres gets pre-ping and a statement timeout; SQLite is only used for
    local development and tests, and in-memory databases share one
    connection so every session sees the same tables.
    """
    if not database_url:
        raise RuntimeError("DATABASE_URL is required.")

    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=False, **kwargs)

    connect_args = {}
    if database_url.startswith("postgresql"):
        connect_args = {
            "connect_timeout": 10,
            "options": "-c statement_timeout=30000",
        }

    return create_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,
        echo=False,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    # Importing the models registers every table on Base.metadata.
    from marketplace import db_models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
