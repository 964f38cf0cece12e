"""
commentscore.api.deps — FastAPI dependency injection
=====================================================
"""

from __future__ import annotations

import os
from functools import lru_cache

from sqlalchemy import Engine

from commentscore.config import CommentScoreConfig, load_config
from commentscore.database.engine import create_db_engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> CommentScoreConfig:
    return load_config(os.getenv("COMMENTSCORE_CONFIG", "config.yaml"))
