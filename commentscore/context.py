"""
commentscore.context — Per-Request Context
===========================================

Each inbound request gets a short request id.  The id travels explicitly
through service calls inside a :class:`RequestContext`; log lines are
prefixed through a :class:`logging.LoggerAdapter` bound to that context,
so no process-wide state is mutated per request.

Usage::

    ctx = RequestContext.new("add-rate")
    log = ctx.logger(__name__)
    log.info("Rating received")            # → "[add-rate][3f9c1a] Rating received"
    log.warning("No thread", extra={"code": "THREAD_NOT_FOUND"})
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import MutableMapping
from dataclasses import dataclass
from typing import Any


class RequestLogger(logging.LoggerAdapter):
    """Prefixes messages with ``[route][request_id]`` and an optional code."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any],
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra

        prefix = f"[{extra.get('route', '-')}][{extra.get('request_id', '-')}]"
        code = extra.get("code")
        if code:
            prefix = f"{prefix}[{code}]"
        return f"{prefix} {msg}", kwargs


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Identity of one inbound request, passed down to services."""

    request_id: str
    route: str

    @classmethod
    def new(cls, route: str) -> RequestContext:
        return cls(request_id=uuid.uuid4().hex[-6:], route=route)

    def logger(self, name: str) -> RequestLogger:
        return RequestLogger(
            logging.getLogger(name),
            {"request_id": self.request_id, "route": self.route},
        )
