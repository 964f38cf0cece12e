"""
commentscore.api.routes.comments — Comment & rating intake
===========================================================

``POST /add-comment`` and ``POST /add-rate``.  Both always answer HTTP 200
with ``{"status": bool}``; the reason for a ``false`` goes to the log only.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends
from pydantic import BaseModel, ConfigDict, ValidationError
from sqlalchemy import Engine

from commentscore.api.deps import get_config, get_engine
from commentscore.config import CommentScoreConfig
from commentscore.context import RequestContext, RequestLogger
from commentscore.database.engine import run_db
from commentscore.errors import CommentScoreError
from commentscore.services import comment_service, rating_service
from commentscore.services.notify_service import dispatch_rating_notification

router = APIRouter(tags=["comments"])
logger = logging.getLogger(__name__)

REQUIRED_RATE_FIELDS = ("channel", "sender_id", "message_id", "value")


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class _IntakeBody(BaseModel):
    # Chat platforms send ids as numbers or strings; store them as strings.
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    channel: str | None = None
    sender_id: str | None = None
    message_id: str | None = None


class AddCommentBody(_IntakeBody):
    message_text: str | None = None
    thread_id: str | None = None
    value: Any = None


class AddRateBody(_IntakeBody):
    value: Any = None


class StatusResponse(BaseModel):
    status: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _parse(model: type[BaseModel], body: Any, log: RequestLogger):
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        log.error(
            "Malformed request body: %s",
            exc.errors(include_url=False),
            extra={"code": "INVALID_BODY"},
        )
        return None


def _log_failure(log: RequestLogger, exc: CommentScoreError) -> None:
    log.log(exc.level, "%s", exc, extra={"code": exc.code})


# ---------------------------------------------------------------------------
# POST /add-comment
# ---------------------------------------------------------------------------
@router.post("/add-comment", response_model=StatusResponse)
async def add_comment(
    body: Any = Body(None),
    engine: Engine = Depends(get_engine),
    cfg: CommentScoreConfig = Depends(get_config),
) -> StatusResponse:
    """Store (or merge) one comment; an optional ``value`` rates it too."""
    ctx = RequestContext.new("add-comment")
    log = ctx.logger(__name__)
    log.info("Request received")

    req = _parse(AddCommentBody, body, log)
    if req is None:
        return StatusResponse(status=False)

    try:
        value = None
        if req.value is not None:
            value = rating_service.validate_value(req.value)

        comment = await run_db(
            comment_service.add_comment,
            engine,
            ctx,
            channel=req.channel,
            sender_id=req.sender_id,
            message_id=req.message_id,
            message_text=req.message_text,
            thread_id=req.thread_id,
        )

        if value is not None:
            await run_db(
                rating_service.apply_rating,
                engine,
                ctx,
                channel=comment.channel,
                sender_id=comment.sender_id,
                message_id=comment.message_id,
                value=value,
                policy=cfg.rerating_policy,
                max_attempts=cfg.cas_max_attempts,
            )
    except CommentScoreError as exc:
        _log_failure(log, exc)
        return StatusResponse(status=False)
    except Exception:
        log.exception("Unhandled error in add-comment")
        return StatusResponse(status=False)

    log.info("Comment saved")
    return StatusResponse(status=True)


# ---------------------------------------------------------------------------
# POST /add-rate
# ---------------------------------------------------------------------------
@router.post("/add-rate", response_model=StatusResponse)
async def add_rate(
    background_tasks: BackgroundTasks,
    body: Any = Body(None),
    engine: Engine = Depends(get_engine),
    cfg: CommentScoreConfig = Depends(get_config),
) -> StatusResponse:
    """Rate a comment and credit its author on the channel leaderboard."""
    ctx = RequestContext.new("add-rate")
    log = ctx.logger(__name__)
    log.info("Rating request received")

    req = _parse(AddRateBody, body, log)
    if req is None:
        return StatusResponse(status=False)

    try:
        comment_service.require_fields(req.model_dump(), REQUIRED_RATE_FIELDS)
        outcome = await run_db(
            rating_service.apply_rating,
            engine,
            ctx,
            channel=req.channel,
            sender_id=req.sender_id,
            message_id=req.message_id,
            value=req.value,
            policy=cfg.rerating_policy,
            max_attempts=cfg.cas_max_attempts,
        )
    except CommentScoreError as exc:
        _log_failure(log, exc)
        return StatusResponse(status=False)
    except Exception:
        log.exception("Unhandled error in add-rate")
        return StatusResponse(status=False)

    if cfg.notify.enabled:
        comment = outcome.comment
        background_tasks.add_task(
            dispatch_rating_notification,
            engine,
            cfg,
            ctx,
            sender_id=comment.sender_id,
            channel=comment.channel,
            thread_text=comment.thread_text,
            message_id=comment.message_id,
            message_text=comment.message_text,
        )

    log.info("Rating applied, leader total now %s", outcome.leader_score)
    return StatusResponse(status=True)
