"""
commentscore.api.main — FastAPI application entry point
=========================================================

Run with::

    uvicorn commentscore.api.main:app --reload --port 8000

or ``python -m commentscore`` to pick host/port/log level from ``config.yaml``.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from commentscore import __version__  # noqa: E402
from commentscore.api.deps import get_config, get_engine  # noqa: E402
from commentscore.api.routes.comments import router as comments_router  # noqa: E402
from commentscore.api.routes.leaderboard import router as leaderboard_router  # noqa: E402
from commentscore.database.engine import init_db, run_db  # noqa: E402
from commentscore.services.settings_service import get_module_settings  # noqa: E402

logger = logging.getLogger(__name__)

INTAKE_PATHS = ("/add-comment", "/add-rate")


def _cors_origins() -> list[str]:
    """Allowed CORS origins from ``CORS_ALLOW_ORIGINS`` (comma-separated)."""
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]
    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — create tables and the settings row."""
    cfg = get_config()
    engine = get_engine()
    await run_db(init_db, engine)
    await run_db(get_module_settings, engine, cfg.notify)
    logger.info(
        "%s started — engine ready (%s), rerating_policy=%s",
        cfg.service_name, engine.url.database, cfg.rerating_policy,
    )
    yield
    logger.info("%s shutting down", cfg.service_name)
    engine.dispose()


app = FastAPI(
    title="Comment Score API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def intake_validation_handler(request: Request, exc: RequestValidationError):
    """Intake routes answer 200 with status false even for unparseable bodies."""
    if request.url.path in INTAKE_PATHS:
        logger.error(
            "[%s] Unparseable request body: %s",
            request.url.path.lstrip("/"), exc.errors(),
            extra={"code": "INVALID_BODY"},
        )
        return JSONResponse({"status": False})
    return await request_validation_exception_handler(request, exc)


app.include_router(comments_router)
app.include_router(leaderboard_router)


@app.get("/health")
def health():
    return {"status": "ok"}
