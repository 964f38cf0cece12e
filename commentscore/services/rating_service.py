"""
commentscore.services.rating_service — Rating Engine
=====================================================

Applies a rating to a comment and folds it into the leaderboard.

Pipeline (one database transaction)::

    1. read comment "{channel}-{message_id}"   (placeholder row if never ingested)
    2. compare-and-set comment.score = value   (retry on version conflict)
    3. leader key = "{comment.channel}-{comment.sender_id}"
    4. delta = value - previous   (adjust)   |   value   (accumulate)
    5. leaders.score += delta                  (INSERT … ON CONFLICT DO UPDATE)

Step 2 serialises concurrent ratings of the same comment; step 5 is a
single atomic statement, so concurrent ratings of the same member never
lose an increment.  A failure anywhere rolls the whole rating back.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import select

from commentscore.config import ReratingPolicy
from commentscore.database.engine import get_session
from commentscore.database.models import Comment, Leader, comment_key, leader_key
from commentscore.database.store import (
    compare_and_set,
    find_by_key,
    increment_by_key,
    insert_if_absent,
)
from commentscore.errors import DbError, InvalidFieldError, RateError

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from commentscore.context import RequestContext

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


@dataclass(slots=True)
class RatingOutcome:
    """Result of :func:`apply_rating`."""
    comment: Comment
    leader_score: float
    delta: float
    attempts: int = 1


def validate_value(value: object) -> float:
    """Coerce a rating value to a finite, non-negative float."""
    if isinstance(value, bool):
        raise InvalidFieldError("value", "must be a number")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidFieldError("value", f"not a number: {value!r}") from None
    if not math.isfinite(number) or number < 0:
        raise InvalidFieldError("value", f"must be a finite number >= 0, got {value!r}")
    return number


def apply_rating(
    engine: Engine,
    ctx: RequestContext,
    *,
    channel: str,
    sender_id: str,
    message_id: str,
    value: float,
    policy: ReratingPolicy = ReratingPolicy.ADJUST,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> RatingOutcome:
    """Set the comment's score to *value* and update the sender's total.

    Raises
    ------
    InvalidFieldError
        *value* is negative, infinite or not a number.
    RateError
        The store failed or the comment kept changing under us for
        *max_attempts* tries.  Nothing is committed in that case.
    """
    log = ctx.logger(__name__)
    value = validate_value(value)
    key = comment_key(channel, message_id)
    log.debug("Applying rating %s to %s (policy=%s)", value, key, policy)

    try:
        with get_session(engine) as session:
            for attempt in range(1, max_attempts + 1):
                comment = find_by_key(session, Comment, key)
                if comment is None:
                    log.info("Comment %s not ingested yet, creating placeholder", key)
                    comment = insert_if_absent(
                        session,
                        Comment,
                        key,
                        {
                            "channel": channel,
                            "sender_id": sender_id,
                            "message_id": message_id,
                            "message_text": "",
                        },
                    )

                previous = comment.score
                if compare_and_set(session, Comment, key, comment.version, {"score": value}):
                    break
                log.debug("Version conflict on %s (attempt %d), retrying", key, attempt)
            else:
                raise RateError(
                    f"Comment {key} changed concurrently {max_attempts} times; giving up"
                )

            comment = find_by_key(session, Comment, key)
            if comment.sender_id != sender_id:
                log.warning(
                    "Rating names sender %s but comment %s belongs to %s; "
                    "crediting the stored sender",
                    sender_id, key, comment.sender_id,
                )

            if policy is ReratingPolicy.ACCUMULATE:
                delta = value
            else:
                delta = value - (previous or 0.0)

            user_key = leader_key(comment.channel, comment.sender_id)
            total = increment_by_key(
                session,
                Leader,
                user_key,
                "score",
                delta,
                {"channel": comment.channel, "sender_id": comment.sender_id},
            )
    except DbError as exc:
        raise RateError(f"Rating {key} failed: {exc}") from exc

    log.info(
        "Comment %s rated %s (previous=%s); leader %s += %s → %s",
        key, value, previous, user_key, delta, total,
    )
    return RatingOutcome(comment=comment, leader_score=total, delta=delta, attempts=attempt)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_leader(engine: Engine, channel: str, sender_id: str) -> Leader | None:
    with get_session(engine) as session:
        return find_by_key(session, Leader, leader_key(channel, sender_id))


def get_leaderboard(
    engine: Engine, channel: str, *, limit: int = 20, offset: int = 0,
) -> list[Leader]:
    """Leaders of *channel*, highest score first."""
    with get_session(engine) as session:
        rows = session.scalars(
            select(Leader)
            .where(Leader.channel == channel)
            .order_by(Leader.score.desc(), Leader.sender_id)
            .offset(offset)
            .limit(limit)
        ).all()
        return list(rows)
