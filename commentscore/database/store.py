"""
commentscore.database.store — Keyed Record Store
=================================================

Point lookups and atomic writes addressed by a table's primary key.
All functions take an open :class:`Session`; the caller owns the
transaction (see :func:`~commentscore.database.engine.get_session`).

Atomicity comes from the database, not from in-process locks:

* :func:`upsert_by_key` / :func:`insert_if_absent` — ``INSERT … ON CONFLICT``
* :func:`increment_by_key` — ``ON CONFLICT DO UPDATE SET f = table.f + :delta``
* :func:`compare_and_set` — ``UPDATE … WHERE version = :expected``

PostgreSQL and SQLite are supported.  Every SQLAlchemy failure is raised
as :class:`~commentscore.errors.DbError`.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from sqlalchemy import func, inspect, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from commentscore.database.models import Base
from commentscore.errors import DbError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Base)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _key_column(model: type[Base]) -> str:
    return inspect(model).primary_key[0].name


def _dialect_insert(session: Session, model: type[Base]):
    """Return the dialect-specific ``insert()`` that supports ON CONFLICT."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise DbError(f"Upsert is not supported on the {dialect!r} dialect")


def _touch(model: type[Base]) -> dict[str, Any]:
    """``updated_at`` is not refreshed by ON CONFLICT DO UPDATE on its own."""
    if "updated_at" in inspect(model).columns:
        return {"updated_at": func.now()}
    return {}


def _require(record: M | None, model: type[Base], key: Any) -> M:
    if record is None:
        raise DbError(f"{model.__tablename__}[{key!r}] vanished after write")
    return record


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def find_by_key(session: Session, model: type[M], key: Any) -> M | None:
    """Exact-match lookup.  Always reloads from the database so a retry
    sees rows committed by other transactions."""
    try:
        return session.get(model, key, populate_existing=True)
    except SQLAlchemyError as exc:
        raise DbError(f"Lookup of {model.__tablename__}[{key!r}] failed: {exc}") from exc


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def create(session: Session, model: type[M], values: dict[str, Any]) -> M:
    """Unconditional insert.  A key collision raises :class:`DbError`."""
    record = model(**values)
    try:
        session.add(record)
        session.flush()
    except SQLAlchemyError as exc:
        raise DbError(f"Insert into {model.__tablename__} failed: {exc}") from exc
    return record


def upsert_by_key(
    session: Session, model: type[M], key: Any, values: dict[str, Any],
) -> M:
    """Create the row for *key* or merge *values* into the existing one.

    Only the supplied fields are written on conflict; everything else keeps
    its stored value.  Returns the resulting full record.
    """
    key_col = _key_column(model)
    merge = {k: v for k, v in values.items() if k != key_col}
    stmt = _dialect_insert(session, model).values({key_col: key, **merge})
    if merge:
        stmt = stmt.on_conflict_do_update(
            index_elements=[key_col],
            set_={**{k: stmt.excluded[k] for k in merge}, **_touch(model)},
        )
    else:
        stmt = stmt.on_conflict_do_nothing(index_elements=[key_col])

    try:
        session.execute(stmt)
    except SQLAlchemyError as exc:
        raise DbError(f"Upsert into {model.__tablename__}[{key!r}] failed: {exc}") from exc
    return _require(find_by_key(session, model, key), model, key)


def insert_if_absent(
    session: Session, model: type[M], key: Any, values: dict[str, Any],
) -> M:
    """Insert ``{key, **values}`` unless the key exists; return the stored row."""
    key_col = _key_column(model)
    stmt = (
        _dialect_insert(session, model)
        .values({key_col: key, **values})
        .on_conflict_do_nothing(index_elements=[key_col])
    )
    try:
        session.execute(stmt)
    except SQLAlchemyError as exc:
        raise DbError(f"Insert into {model.__tablename__}[{key!r}] failed: {exc}") from exc
    return _require(find_by_key(session, model, key), model, key)


def increment_by_key(
    session: Session,
    model: type[M],
    key: Any,
    field: str,
    delta: float,
    defaults: dict[str, Any] | None = None,
) -> float:
    """Atomically add *delta* to ``model.field`` for *key*.

    A missing row is created from *defaults* with ``field = delta``.
    Returns the new value of the field.
    """
    key_col = _key_column(model)
    column = getattr(model, field)
    stmt = _dialect_insert(session, model).values(
        {key_col: key, **(defaults or {}), field: delta}
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[key_col],
        set_={field: column + delta, **_touch(model)},
    )
    try:
        session.execute(stmt)
    except SQLAlchemyError as exc:
        raise DbError(
            f"Increment of {model.__tablename__}[{key!r}].{field} failed: {exc}"
        ) from exc
    record = _require(find_by_key(session, model, key), model, key)
    return getattr(record, field)


def compare_and_set(
    session: Session,
    model: type[Base],
    key: Any,
    expected_version: int,
    values: dict[str, Any],
) -> bool:
    """Write *values* only if the row still has *expected_version*.

    Bumps ``version`` on success.  Returns False when another writer got
    there first (or the row is gone).
    """
    key_attr = getattr(model, _key_column(model))
    stmt = (
        update(model)
        .where(key_attr == key, model.version == expected_version)
        .values(**values, version=model.version + 1)
        .execution_options(synchronize_session=False)
    )
    try:
        result = session.execute(stmt)
    except SQLAlchemyError as exc:
        raise DbError(f"Update of {model.__tablename__}[{key!r}] failed: {exc}") from exc
    return result.rowcount == 1
