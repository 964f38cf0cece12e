"""
commentscore.errors — Error Taxonomy
=====================================

Every failure the services can signal.  Each error carries a stable
``code`` (used as the log tag) and the ``level`` it should be logged at.
Services raise; request handlers log once and answer ``{"status": false}``.
"""

from __future__ import annotations

import logging


class CommentScoreError(Exception):
    """Base class for all service-level failures."""

    code = "ERROR"
    level = logging.ERROR


class MissingFieldError(CommentScoreError):
    """A required request field is absent or empty."""

    def __init__(self, field: str) -> None:
        super().__init__(f'Missing required field "{field}"')
        self.field = field
        self.code = f"MISSING_FIELD_{field.upper()}"


class InvalidFieldError(CommentScoreError):
    """A request field is present but unusable."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f'Invalid field "{field}": {reason}')
        self.field = field
        self.code = f"INVALID_FIELD_{field.upper()}"


class NoTextError(CommentScoreError):
    """The message text is only a raw ``base64(`` marker."""

    code = "NO_TEXT"
    level = logging.WARNING


class ThreadNotFoundError(CommentScoreError):
    """The parent thread post was never stored."""

    code = "THREAD_NOT_FOUND"
    level = logging.WARNING


class DecodeError(CommentScoreError):
    """Text is not valid URL-safe base64 / UTF-8."""

    code = "DECODE_ERROR"
    level = logging.WARNING


class DbError(CommentScoreError):
    """The record store rejected or failed an operation."""

    code = "DB_ERROR"


class RateError(CommentScoreError):
    """A rating could not be applied."""

    code = "RATE_ERROR"
