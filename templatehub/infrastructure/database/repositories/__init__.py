"""SQLAlchemy-backed repository implementations."""

from .template_repository import SqlTemplateRepository

__all__ = [
    "SqlTemplateRepository",
]
