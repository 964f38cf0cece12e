"""
commentscore.__main__ — Entry point for ``python -m commentscore``
==================================================================

Wiring:
1. Load .env (secrets: DATABASE_URL, NOTIFY_API_KEY).
2. Load config.yaml (host, port, log level, rating policy).
3. Configure logging.
4. Serve :mod:`commentscore.api.main` with uvicorn (tables and the settings
   row are created in the app lifespan).
"""

from __future__ import annotations

import logging
import os
import sys

import uvicorn
from dotenv import load_dotenv

from commentscore.config import load_config

logger = logging.getLogger("commentscore")


def main() -> None:
    """Bootstrap and run the API server."""
    load_dotenv()

    if not os.getenv("DATABASE_URL"):
        logging.basicConfig(level=logging.INFO)
        logger.critical(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a database URL."
        )
        sys.exit(1)

    cfg = load_config(os.getenv("COMMENTSCORE_CONFIG", "config.yaml"))

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    logger.info("Config loaded — %s on %s:%d", cfg.service_name, cfg.host, cfg.port)

    uvicorn.run(
        "commentscore.api.main:app",
        host=cfg.host,
        port=cfg.port,
        log_config=None,  # keep the root handler configured above
    )


if __name__ == "__main__":
    main()
