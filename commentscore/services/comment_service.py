"""
commentscore.services.comment_service — Comment Ingestion
==========================================================

Validates an incoming comment and upserts it into ``comments``.

Non-fatal conditions (parent thread never stored, text that isn't
base64) are logged through the request logger and ingestion carries on.
Fatal conditions raise a :class:`~commentscore.errors.CommentScoreError`
before anything is written.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from commentscore.database.engine import get_session
from commentscore.database.models import Comment, comment_key
from commentscore.database.store import find_by_key, upsert_by_key
from commentscore.engine.codec import decode_text, is_base64_marker
from commentscore.errors import DecodeError, MissingFieldError, NoTextError, ThreadNotFoundError

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from commentscore.context import RequestContext

logger = logging.getLogger(__name__)

REQUIRED_COMMENT_FIELDS = ("channel", "sender_id", "message_id", "message_text")


def require_fields(values: dict[str, object], fields: tuple[str, ...]) -> None:
    """Raise :class:`MissingFieldError` for the first absent/empty field."""
    for name in fields:
        value = values.get(name)
        if value is None or value == "":
            raise MissingFieldError(name)


def get_thread_text(session: Session, channel: str, thread_id: str) -> str | None:
    """Text of the stored parent post, or None if it was never ingested."""
    parent = find_by_key(session, Comment, comment_key(channel, thread_id))
    return parent.message_text if parent is not None else None


def get_comment(engine: Engine, channel: str, message_id: str) -> Comment | None:
    with get_session(engine) as session:
        return find_by_key(session, Comment, comment_key(channel, message_id))


def add_comment(
    engine: Engine,
    ctx: RequestContext,
    *,
    channel: str | None,
    sender_id: str | None,
    message_id: str | None,
    message_text: str | None,
    thread_id: str | None = None,
) -> Comment:
    """Persist one comment (create or merge by ``"{channel}-{message_id}"``).

    Raises
    ------
    MissingFieldError
        A required field is absent; nothing is written.
    NoTextError
        The text is only a ``base64(`` marker, or decodes to nothing but
        whitespace; nothing is written.
    DbError
        The store failed.
    """
    log = ctx.logger(__name__)
    require_fields(
        {
            "channel": channel,
            "sender_id": sender_id,
            "message_id": message_id,
            "message_text": message_text,
        },
        REQUIRED_COMMENT_FIELDS,
    )

    if is_base64_marker(message_text):
        raise NoTextError(f"Message {channel}/{message_id} carries only a base64 marker")

    try:
        text = decode_text(message_text)
    except DecodeError as exc:
        log.warning("Keeping raw message_text: %s", exc, extra={"code": exc.code})
        text = message_text
    if not text.strip():
        raise NoTextError(f"Message {channel}/{message_id} decodes to empty text")

    key = comment_key(channel, message_id)
    with get_session(engine) as session:
        thread_text: str | None = None
        if thread_id:
            thread_text = get_thread_text(session, channel, thread_id)
            if thread_text is None:
                log.warning(
                    "No stored post for thread %s-%s, continuing without thread text",
                    channel, thread_id,
                    extra={"code": ThreadNotFoundError.code},
                )
        else:
            log.debug("No thread_id, skipping parent post lookup")

        values: dict[str, object] = {
            "channel": channel,
            "sender_id": sender_id,
            "message_id": message_id,
            "message_text": text,
        }
        if thread_id:
            values["thread_id"] = thread_id
        if thread_text is not None:
            values["thread_text"] = thread_text

        comment = upsert_by_key(session, Comment, key, values)

    log.info("Comment %s stored (%d chars)", key, len(text))
    return comment
