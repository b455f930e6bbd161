"""Application container holding process-wide collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from templatehub.core.config import Settings, get_settings
from templatehub.domain.templates.exceptions import StorageIntegrationError
from templatehub.infrastructure.database import dispose_engine, init_db
from templatehub.infrastructure.storage import S3StorageIntegration

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    storage: S3StorageIntegration

    async def startup(self) -> None:
        """Create tables and check the template bucket.

        An unreachable object store is logged and tolerated; uploads retry the
        bucket check on every request.
        """
        await init_db()
        try:
            await self.storage.ensure_bucket_exists(self.settings.bucket)
        except StorageIntegrationError as exc:
            logger.warning("Object storage not ready at startup: %s", exc)

    async def shutdown(self) -> None:
        await dispose_engine()


@lru_cache()
def get_container() -> ApplicationContainer:
    settings = get_settings()
    return ApplicationContainer(settings=settings, storage=S3StorageIntegration(settings.storage))


__all__ = ["ApplicationContainer", "get_container"]
