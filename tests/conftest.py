"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from commentscore.config import CommentScoreConfig, NotifyConfig, ReratingPolicy
from commentscore.context import RequestContext
from commentscore.database.engine import create_db_engine, init_db
from commentscore.database.models import Base


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all tables.

    Uses StaticPool so ``run_db`` worker threads share the same in-memory
    database.  Not suitable for real concurrency (one shared connection);
    use ``file_engine`` for that.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def file_engine(tmp_path) -> Engine:
    """File-backed SQLite engine with a real connection pool, for tests
    that run writers on several threads at once."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'commentscore.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext.new("test")


@pytest.fixture
def cfg() -> CommentScoreConfig:
    """Config with notifications off so route tests never leave the process."""
    return CommentScoreConfig(
        rerating_policy=ReratingPolicy.ADJUST,
        notify=NotifyConfig(enabled=False, api_key="test-key"),
    )


@pytest.fixture
def client(db_engine, cfg):
    """FastAPI TestClient wired to the in-memory engine.

    Not used as a context manager, so the lifespan (which reads
    DATABASE_URL and config.yaml) does not run.
    """
    from fastapi.testclient import TestClient

    from commentscore.api.deps import get_config, get_engine
    from commentscore.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: cfg
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
