"""
commentscore.services.notify_service — Rating Notifications
============================================================

Forwards a ``rateMessage`` event to the Salebot ``tg_callback`` endpoint::

    POST {notify.base_url}/api/{api_key}/tg_callback

The API key is read from the ``module_settings`` singleton.  Delivery is
best-effort: a non-200 answer is logged and not retried.  Transport errors
propagate out of :func:`notify_rating`; request handlers go through
:func:`dispatch_rating_notification`, which contains them so a committed
rating is never unwound by a notification failure.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from commentscore.database.engine import run_db
from commentscore.services.settings_service import get_module_settings

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from commentscore.config import CommentScoreConfig
    from commentscore.context import RequestContext

logger = logging.getLogger(__name__)

RATE_MESSAGE_EVENT = "rateMessage"


def build_callback_url(base_url: str, api_key: str) -> str:
    return f"{base_url.rstrip('/')}/api/{api_key}/tg_callback"


def build_rate_payload(
    *,
    sender_id: str,
    group_id: str,
    channel: str,
    thread_text: str | None,
    message_id: str,
    message_text: str,
) -> dict[str, Any]:
    return {
        "message": RATE_MESSAGE_EVENT,
        "user_id": sender_id,
        "group_id": group_id,
        "rating_channel": channel,
        "rating_thread_text": thread_text or "",
        "rating_message_id": message_id,
        "rating_message_text": message_text,
    }


async def notify_rating(
    engine: Engine,
    cfg: CommentScoreConfig,
    ctx: RequestContext,
    *,
    sender_id: str,
    channel: str,
    thread_text: str | None,
    message_id: str,
    message_text: str,
    client: httpx.AsyncClient | None = None,
) -> None:
    """Send one ``rateMessage`` callback.

    Raises
    ------
    httpx.HTTPError
        Connection/timeout/protocol failures, after logging them.
    """
    log = ctx.logger(__name__)

    settings = await run_db(get_module_settings, engine, cfg.notify)
    if not settings.api_key:
        log.warning("No notification API key configured, skipping rateMessage")
        return

    url = build_callback_url(cfg.notify.base_url, settings.api_key)
    payload = build_rate_payload(
        sender_id=sender_id,
        group_id=cfg.notify.group_id,
        channel=channel,
        thread_text=thread_text,
        message_id=message_id,
        message_text=message_text,
    )
    log.debug("POST %s payload=%s", cfg.notify.base_url + "/api/***/tg_callback", payload)

    try:
        if client is not None:
            resp = await client.post(url, json=payload)
        else:
            transport = httpx.AsyncHTTPTransport(retries=1)
            async with httpx.AsyncClient(
                timeout=cfg.notify.timeout_seconds, transport=transport,
            ) as own_client:
                resp = await own_client.post(url, json=payload)
    except httpx.HTTPError as exc:
        log.error("rateMessage transport failure: %s", exc)
        raise

    log.info("rateMessage response.status_code=%s", resp.status_code)
    if resp.status_code != 200:
        log.error("rateMessage unexpected status %s: %s", resp.status_code, resp.text[:200])


async def dispatch_rating_notification(
    engine: Engine,
    cfg: CommentScoreConfig,
    ctx: RequestContext,
    **fields: Any,
) -> bool:
    """Fire-and-forget wrapper around :func:`notify_rating`.

    Runs as a background task after the response is sent, so no failure
    may escape it, including store errors while loading the settings row.
    Returns False if the callback could not be delivered.
    """
    log = ctx.logger(__name__)
    try:
        await notify_rating(engine, cfg, ctx, **fields)
    except httpx.HTTPError:
        # Already logged by notify_rating
        log.warning(
            "rateMessage not delivered; rating stays committed",
            extra={"code": "NOTIFY_ERROR"},
        )
        return False
    except Exception:
        log.exception(
            "rateMessage dispatch failed; rating stays committed",
            extra={"code": "NOTIFY_ERROR"},
        )
        return False
    return True
