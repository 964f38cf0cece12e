"""
commentscore.config — YAML Configuration Loader
================================================

Reads ``config.yaml`` for service-level settings: how ratings fold into
the leaderboard, and where rating notifications are sent.  Secrets
(``DATABASE_URL``, ``NOTIFY_API_KEY``) come from the environment / ``.env``.

Usage::

    from commentscore.config import load_config

    cfg = load_config()              # reads ./config.yaml by default
    print(cfg.rerating_policy)       # ReratingPolicy.ADJUST
    print(cfg.notify.base_url)       # "https://chatter.salebot.pro"
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


class ReratingPolicy(enum.StrEnum):
    """How a second rating of the same comment affects the leaderboard."""
    ADJUST = "adjust"          # replace the comment's previous contribution
    ACCUMULATE = "accumulate"  # add every rating value again


DEFAULT_NOTIFY_BASE_URL = "https://chatter.salebot.pro"
DEFAULT_NOTIFY_GROUP_ID = "natali_chatadmin_bot"


@dataclass(frozen=True, slots=True)
class NotifyConfig:
    """Outbound ``tg_callback`` settings."""

    enabled: bool = True
    base_url: str = DEFAULT_NOTIFY_BASE_URL
    group_id: str = DEFAULT_NOTIFY_GROUP_ID
    timeout_seconds: float = 10.0

    # Seed values for the lazily created module_settings row
    project_id: str = ""
    api_key: str = ""


@dataclass(frozen=True, slots=True)
class CommentScoreConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    service_name: str = "commentscore"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    rerating_policy: ReratingPolicy = ReratingPolicy.ADJUST
    cas_max_attempts: int = 5  # compare-and-set retries per rating

    notify: NotifyConfig = field(default_factory=NotifyConfig)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> CommentScoreConfig:
    """Read *path* and return a :class:`CommentScoreConfig` instance.

    Keys missing from the file fall back to the dataclass defaults.
    ``NOTIFY_API_KEY`` in the environment overrides ``notify.api_key``.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If ``rerating_policy`` is not one of the known policies.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return config_from_dict(raw)


def config_from_dict(raw: dict) -> CommentScoreConfig:
    """Build a config from an already-parsed mapping."""
    defaults = CommentScoreConfig()
    notify_raw: dict = raw.get("notify") or {}
    notify_defaults = NotifyConfig()

    policy_raw = str(raw.get("rerating_policy", defaults.rerating_policy)).lower()
    try:
        policy = ReratingPolicy(policy_raw)
    except ValueError:
        allowed = ", ".join(p.value for p in ReratingPolicy)
        raise ValueError(
            f"Unknown rerating_policy {policy_raw!r} (expected one of: {allowed})"
        ) from None

    notify = NotifyConfig(
        enabled=bool(notify_raw.get("enabled", notify_defaults.enabled)),
        base_url=str(notify_raw.get("base_url", notify_defaults.base_url)).rstrip("/"),
        group_id=str(notify_raw.get("group_id", notify_defaults.group_id)),
        timeout_seconds=float(
            notify_raw.get("timeout_seconds", notify_defaults.timeout_seconds)
        ),
        project_id=str(notify_raw.get("project_id") or ""),
        api_key=os.getenv("NOTIFY_API_KEY") or str(notify_raw.get("api_key") or ""),
    )

    return CommentScoreConfig(
        service_name=str(raw.get("service_name", defaults.service_name)),
        log_level=str(raw.get("log_level", defaults.log_level)).upper(),
        host=str(raw.get("host", defaults.host)),
        port=int(raw.get("port", defaults.port)),
        rerating_policy=policy,
        cas_max_attempts=max(1, int(raw.get("cas_max_attempts", defaults.cas_max_attempts))),
        notify=notify,
    )
