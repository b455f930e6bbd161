"""Reusable FastAPI dependencies."""

from .database import get_db_session
from .templates import get_storage_integration, get_template_service

__all__ = [
    "get_db_session",
    "get_storage_integration",
    "get_template_service",
]
