"""
commentscore.api.routes.leaderboard — Public leaderboard reads
===============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Engine

from commentscore.api.deps import get_engine
from commentscore.services import rating_service

router = APIRouter(tags=["leaderboard"])


# ---------------------------------------------------------------------------
# GET /leaderboard/{channel}
# ---------------------------------------------------------------------------
@router.get("/leaderboard/{channel}")
def get_leaderboard(
    channel: str,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    engine: Engine = Depends(get_engine),
):
    """Paginated leaderboard of one channel, highest score first."""
    offset = (page - 1) * page_size
    rows = rating_service.get_leaderboard(engine, channel, limit=page_size, offset=offset)
    return {
        "channel": channel,
        "page": page,
        "page_size": page_size,
        "leaders": [
            {"rank": offset + i + 1, "sender_id": r.sender_id, "score": r.score}
            for i, r in enumerate(rows)
        ],
    }
