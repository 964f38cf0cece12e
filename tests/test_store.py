"""
tests/test_store.py — Keyed Record Store
=========================================
Upsert merge semantics, atomic increment and version-checked updates
against SQLite.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from commentscore.database import store
from commentscore.database.models import Comment, Leader, comment_key, leader_key
from commentscore.errors import DbError


def _comment_values(**overrides) -> dict:
    values = {
        "channel": "c1",
        "sender_id": "u1",
        "message_id": "m1",
        "message_text": "hello",
    }
    values.update(overrides)
    return values


class TestUpsertByKey:
    def test_creates_missing_row(self, db_session):
        row = store.upsert_by_key(db_session, Comment, "c1-m1", _comment_values())
        assert row.key == "c1-m1"
        assert row.message_text == "hello"
        assert row.score is None
        assert row.version == 0

    def test_merges_into_existing_row(self, db_session):
        store.upsert_by_key(
            db_session, Comment, "c1-m1", _comment_values(thread_id="t1", thread_text="post"),
        )
        row = store.upsert_by_key(
            db_session, Comment, "c1-m1", _comment_values(message_text="edited"),
        )
        assert row.message_text == "edited"
        # Fields not supplied on the second write keep their values
        assert row.thread_id == "t1"
        assert row.thread_text == "post"

    def test_never_duplicates(self, db_session):
        for text in ("a", "b", "c"):
            store.upsert_by_key(db_session, Comment, "c1-m1", _comment_values(message_text=text))
        count = db_session.scalar(select(func.count()).select_from(Comment))
        assert count == 1


class TestInsertIfAbsent:
    def test_keeps_existing_values(self, db_session):
        store.upsert_by_key(db_session, Comment, "c1-m1", _comment_values())
        row = store.insert_if_absent(
            db_session, Comment, "c1-m1", _comment_values(message_text="placeholder"),
        )
        assert row.message_text == "hello"


class TestCreate:
    def test_inserts(self, db_session):
        row = store.create(
            db_session, Leader, {"key": "c1-u1", "channel": "c1", "sender_id": "u1", "score": 4},
        )
        assert store.find_by_key(db_session, Leader, "c1-u1") is row
        assert row.score == 4

    def test_duplicate_key_raises_db_error(self, db_engine):
        with Session(db_engine) as session:
            values = {"key": "c1-u1", "channel": "c1", "sender_id": "u1", "score": 1}
            store.create(session, Leader, values)
            session.commit()
        with Session(db_engine) as session:
            with pytest.raises(DbError):
                store.create(
                    session,
                    Leader,
                    {"key": "c1-u1", "channel": "c1", "sender_id": "u1", "score": 2},
                )


class TestIncrementByKey:
    def test_creates_with_delta(self, db_session):
        total = store.increment_by_key(
            db_session, Leader, "c1-u1", "score", 5, {"channel": "c1", "sender_id": "u1"},
        )
        assert total == 5

    def test_adds_to_existing(self, db_session):
        defaults = {"channel": "c1", "sender_id": "u1"}
        for delta in (5, 3, 0.5):
            total = store.increment_by_key(db_session, Leader, "c1-u1", "score", delta, defaults)
        assert total == pytest.approx(8.5)
        assert store.find_by_key(db_session, Leader, "c1-u1").score == pytest.approx(8.5)

    def test_negative_delta(self, db_session):
        defaults = {"channel": "c1", "sender_id": "u1"}
        store.increment_by_key(db_session, Leader, "c1-u1", "score", 5, defaults)
        total = store.increment_by_key(db_session, Leader, "c1-u1", "score", -2, defaults)
        assert total == 3


class TestCompareAndSet:
    def test_succeeds_on_matching_version(self, db_session):
        store.upsert_by_key(db_session, Comment, "c1-m1", _comment_values())
        assert store.compare_and_set(db_session, Comment, "c1-m1", 0, {"score": 5})
        row = store.find_by_key(db_session, Comment, "c1-m1")
        assert row.score == 5
        assert row.version == 1

    def test_fails_on_stale_version(self, db_session):
        store.upsert_by_key(db_session, Comment, "c1-m1", _comment_values())
        assert store.compare_and_set(db_session, Comment, "c1-m1", 0, {"score": 5})
        assert not store.compare_and_set(db_session, Comment, "c1-m1", 0, {"score": 9})
        assert store.find_by_key(db_session, Comment, "c1-m1").score == 5

    def test_missing_row(self, db_session):
        assert not store.compare_and_set(db_session, Comment, "nope", 0, {"score": 1})


class TestDialects:
    def test_unsupported_dialect_raises(self):
        session = MagicMock()
        session.get_bind.return_value.dialect.name = "mysql"
        with pytest.raises(DbError):
            store.upsert_by_key(session, Leader, "k", {"channel": "c", "sender_id": "u"})


class TestKeys:
    def test_format(self):
        assert comment_key("c1", "m1") == "c1-m1"
        assert leader_key("-100123", "42") == "-100123-42"

    def test_dash_in_ids_is_ambiguous(self):
        # Known limit of the key format; both pairs land on one row
        assert comment_key("a-b", "c") == comment_key("a", "b-c")
