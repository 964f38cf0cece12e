"""
tests/test_migrations.py — Alembic Schema
==========================================
Runs the migration chain against a file-backed SQLite database and checks
the result matches the ORM models.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from commentscore.database.engine import create_db_engine
from commentscore.database.models import Base
from commentscore.services import rating_service

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "alembic"


@pytest.fixture
def alembic_cfg(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    cfg = Config()
    cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    return cfg, url


class TestMigrations:
    def test_upgrade_creates_model_tables(self, alembic_cfg):
        cfg, url = alembic_cfg
        command.upgrade(cfg, "head")

        engine = create_db_engine(url)
        try:
            inspector = inspect(engine)
            tables = set(inspector.get_table_names()) - {"alembic_version"}
            assert tables == set(Base.metadata.tables)
            for name, table in Base.metadata.tables.items():
                columns = {c["name"] for c in inspector.get_columns(name)}
                assert columns == {c.name for c in table.columns}
        finally:
            engine.dispose()

    def test_migrated_schema_supports_rating(self, alembic_cfg, ctx):
        cfg, url = alembic_cfg
        command.upgrade(cfg, "head")

        engine = create_db_engine(url)
        try:
            rating_service.apply_rating(
                engine, ctx, channel="c1", sender_id="u1", message_id="m1", value=3,
            )
            outcome = rating_service.apply_rating(
                engine, ctx, channel="c1", sender_id="u1", message_id="m2", value=4,
            )
            assert outcome.leader_score == 7
        finally:
            engine.dispose()

    def test_downgrade_removes_tables(self, alembic_cfg):
        cfg, url = alembic_cfg
        command.upgrade(cfg, "head")
        command.downgrade(cfg, "base")

        engine = create_db_engine(url)
        try:
            tables = set(inspect(engine).get_table_names()) - {"alembic_version"}
            assert tables == set()
        finally:
            engine.dispose()
