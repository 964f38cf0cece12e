"""
commentscore.services.settings_service — Module Settings Singleton
===================================================================

The ``module_settings`` table holds exactly one row.  It is created on
first access with defaults seeded from :class:`~commentscore.config.NotifyConfig`;
creation is an ``INSERT … ON CONFLICT DO NOTHING`` so concurrent first
readers cannot produce two rows.  Credentials left empty on an existing
row are filled from config on later reads; stored values are never replaced.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from commentscore.database.engine import get_session
from commentscore.database.models import (
    SETTINGS_SINGLETON_ID,
    ModuleSettings,
    ModuleStatus,
)
from commentscore.database.store import find_by_key, insert_if_absent
from commentscore.errors import DbError

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from commentscore.config import NotifyConfig

logger = logging.getLogger(__name__)


def default_settings(notify: NotifyConfig | None = None) -> dict:
    """Column values for a freshly created settings row."""
    return {
        "active": False,
        "status": ModuleStatus.DISABLED.value,
        "job_id": None,
        "threads": [],
        "launch_time": None,
        "project_id": notify.project_id if notify else "",
        "api_key": notify.api_key if notify else "",
    }


def _fill_missing_credentials(
    session: Session, row: ModuleSettings, notify: NotifyConfig,
) -> None:
    """Copy credentials from config into columns that are still empty.

    A row created before ``NOTIFY_API_KEY`` was set would otherwise keep an
    empty key forever.  Stored non-empty values always win.
    """
    changed = False
    if not row.api_key and notify.api_key:
        row.api_key = notify.api_key
        changed = True
    if not row.project_id and notify.project_id:
        row.project_id = notify.project_id
        changed = True
    if changed:
        logger.info("module_settings credentials were empty, filled from config")
        try:
            session.flush()
        except SQLAlchemyError as exc:
            raise DbError(f"Updating module_settings credentials failed: {exc}") from exc


def ensure_module_settings(session: Session, notify: NotifyConfig | None = None) -> ModuleSettings:
    """Return the singleton row inside *session*, creating it if needed."""
    row = find_by_key(session, ModuleSettings, SETTINGS_SINGLETON_ID)
    if row is not None:
        if notify is not None:
            _fill_missing_credentials(session, row, notify)
        return row
    logger.info("module_settings row missing, creating defaults")
    return insert_if_absent(
        session, ModuleSettings, SETTINGS_SINGLETON_ID, default_settings(notify)
    )


def get_module_settings(engine: Engine, notify: NotifyConfig | None = None) -> ModuleSettings:
    """Load (lazily creating) the singleton settings row."""
    with get_session(engine) as session:
        return ensure_module_settings(session, notify)
