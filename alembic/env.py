"""Alembic environment for the commentscore schema.

Tables: ``comments``, ``leaders`` and the ``module_settings`` singleton.
The database URL comes from ``DATABASE_URL`` (``.env`` is loaded first),
falling back to ``sqlalchemy.url`` in ``alembic.ini``.  SQLite targets run
in batch mode so column changes become table copies.
"""

from __future__ import annotations

import logging
import os
from logging.config import fileConfig

from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

from alembic import context

# Load .env so DATABASE_URL is available
load_dotenv()

# Alembic Config object
config = context.config

# Keep the service's own loggers alive when migrations run in-process
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

logger = logging.getLogger("alembic.env")


def _database_url() -> str:
    url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env before running alembic."
        )
    return url


database_url = _database_url()
config.set_main_option("sqlalchemy.url", database_url)

# Import the models so autogenerate sees comments / leaders / module_settings
from commentscore.database.models import Base  # noqa: E402

target_metadata = Base.metadata

# SQLite has no ALTER COLUMN
_render_as_batch = database_url.startswith("sqlite")


def _skip_empty_autogenerate(migration_context, revision, directives) -> None:
    """Don't write a revision file when autogenerate finds no changes."""
    if getattr(config.cmd_opts, "autogenerate", False):
        script = directives[0]
        if script.upgrade_ops.is_empty():
            directives[:] = []
            logger.info("No schema changes detected; no revision written.")


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        # Float/String length changes on comments.score etc. should show up
        compare_type=True,
        render_as_batch=_render_as_batch,
        process_revision_directives=_skip_empty_autogenerate,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit the SQL script without connecting."""
    _configure(
        url=database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a short-lived connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
