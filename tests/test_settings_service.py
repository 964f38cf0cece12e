"""
tests/test_settings_service.py — Module Settings Singleton
===========================================================
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from commentscore.config import NotifyConfig
from commentscore.database.models import SETTINGS_SINGLETON_ID, ModuleSettings, ModuleStatus
from commentscore.services import settings_service


def _row_count(engine) -> int:
    with Session(engine) as session:
        return session.scalar(select(func.count()).select_from(ModuleSettings))


class TestGetModuleSettings:
    def test_created_lazily_with_defaults(self, db_engine):
        assert _row_count(db_engine) == 0
        row = settings_service.get_module_settings(db_engine)
        assert row.id == SETTINGS_SINGLETON_ID
        assert row.active is False
        assert row.status == ModuleStatus.DISABLED
        assert row.job_id is None
        assert row.threads == []
        assert row.launch_time is None
        assert row.api_key == ""
        assert _row_count(db_engine) == 1

    def test_credentials_seeded_from_config(self, db_engine):
        notify = NotifyConfig(project_id="proj-1", api_key="secret-key")
        row = settings_service.get_module_settings(db_engine, notify)
        assert row.project_id == "proj-1"
        assert row.api_key == "secret-key"

    def test_existing_row_is_not_overwritten(self, db_engine):
        settings_service.get_module_settings(db_engine, NotifyConfig(api_key="first"))
        with Session(db_engine) as session:
            row = session.get(ModuleSettings, SETTINGS_SINGLETON_ID)
            row.status = ModuleStatus.IN_WORK.value
            row.job_id = 42
            row.threads = [101, 102]
            session.commit()

        row = settings_service.get_module_settings(db_engine, NotifyConfig(api_key="second"))
        assert row.api_key == "first"
        assert row.status == ModuleStatus.IN_WORK
        assert row.job_id == 42
        assert row.threads == [101, 102]
        assert _row_count(db_engine) == 1

    def test_concurrent_first_access_creates_one_row(self, file_engine):
        with ThreadPoolExecutor(max_workers=8) as pool:
            rows = list(pool.map(
                lambda _: settings_service.get_module_settings(file_engine),
                range(16),
            ))
        assert {r.id for r in rows} == {SETTINGS_SINGLETON_ID}
        assert _row_count(file_engine) == 1

    def test_empty_credentials_filled_from_config(self, db_engine):
        # First boot without NOTIFY_API_KEY
        settings_service.get_module_settings(db_engine, NotifyConfig())
        row = settings_service.get_module_settings(
            db_engine, NotifyConfig(project_id="proj-2", api_key="late-key"),
        )
        assert row.api_key == "late-key"
        assert row.project_id == "proj-2"
        assert settings_service.get_module_settings(db_engine).api_key == "late-key"
        assert _row_count(db_engine) == 1

    def test_read_without_config_leaves_row_alone(self, db_engine):
        settings_service.get_module_settings(db_engine, NotifyConfig())
        assert settings_service.get_module_settings(db_engine).api_key == ""
