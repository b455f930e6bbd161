"""Template related dependency providers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from templatehub.core.container import get_container
from templatehub.domain.templates import StorageIntegration, TemplateService

from .database import get_db_session


def get_storage_integration() -> StorageIntegration:
    return get_container().storage


def get_template_service(
    db: AsyncSession = Depends(get_db_session),
    storage: StorageIntegration = Depends(get_storage_integration),
) -> TemplateService:
    return TemplateService.with_session(db, storage)


__all__ = [
    "get_storage_integration",
    "get_template_service",
]
