"""
commentscore — Comment Rating & Leaderboards for Chat Channels
===============================================================
Records comments posted under discussion threads, accepts rating events
for those comments, keeps a per-(channel, member) leaderboard and forwards
rating notifications to an external messaging-automation API.

Package layout::

    commentscore/
    ├── config.py          # YAML → typed Python config
    ├── context.py         # Per-request id + prefixed logger
    ├── errors.py          # Error taxonomy (codes + log levels)
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # comments, leaders, module_settings
    │   └── store.py       # Keyed upsert / atomic increment / CAS
    ├── engine/
    │   └── codec.py       # URL-safe base64 text transcoding
    ├── services/
    │   ├── comment_service.py   # Comment ingestion
    │   ├── rating_service.py    # Rating engine + leaderboard fold
    │   ├── settings_service.py  # Lazy singleton module settings
    │   └── notify_service.py    # Outbound rateMessage callback
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Dependency injection
        └── routes/        # /add-comment, /add-rate, /leaderboard
"""

__version__ = "0.1.0"
