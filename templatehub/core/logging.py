"""Logging setup with a per-request track id."""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar, Token

from templatehub.core.config import Settings

_track_id: ContextVar[str | None] = ContextVar("track_id", default=None)


def get_track_id() -> str | None:
    return _track_id.get()


def bind_track_id(track_id: str | None = None) -> Token:
    """Set the track id for the current context, generating one when absent."""
    return _track_id.set(track_id or str(uuid.uuid4()))


def reset_track_id(token: Token) -> None:
    _track_id.reset(token)


class TrackIdFilter(logging.Filter):
    """Attach the current track id to every record as ``record.track_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.track_id = _track_id.get() or "-"
        return True


def configure_logging(settings: Settings) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(settings.logging.format))
    handler.addFilter(TrackIdFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing, logging.StreamHandler) and any(
            isinstance(f, TrackIdFilter) for f in existing.filters
        ):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if settings.debug else settings.logging.level.upper())
