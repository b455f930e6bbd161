"""Test configuration and fixtures."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from templatehub.core.config import Settings
from templatehub.db import models  # noqa: F401
from templatehub.domain.templates import StorageIntegrationError, TemplateService
from templatehub.infrastructure.database.base import Base
from templatehub.infrastructure.database.repositories import SqlTemplateRepository


class FakeStorage:
    """In-memory stand-in for the object store.

    Objects are ``(bucket, key) -> size``. The ``fail_*`` switches make the
    matching call raise ``StorageIntegrationError``.
    """

    def __init__(self) -> None:
        self.buckets: set[str] = set()
        self.objects: dict[tuple[str, str], int] = {}
        self.upload_grants: list[dict[str, Any]] = []
        self.fail_ensure = False
        self.fail_presign = False
        self.fail_delete = False

    def put(self, bucket: str, key: str, size: int = 1) -> None:
        self.objects[(bucket, key)] = size

    def keys(self, bucket: str) -> list[str]:
        return sorted(key for b, key in self.objects if b == bucket)

    async def ensure_bucket_exists(self, bucket: str) -> None:
        if self.fail_ensure:
            raise StorageIntegrationError(f"cannot reach bucket {bucket}")
        self.buckets.add(bucket)

    async def generate_presigned_upload_url(
        self,
        bucket: str,
        key: str,
        expiry_seconds: int,
        content_type: Optional[str] = None,
    ) -> str:
        if self.fail_presign:
            raise StorageIntegrationError(f"cannot presign {key}")
        self.upload_grants.append(
            {"bucket": bucket, "key": key, "expiry": expiry_seconds, "content_type": content_type}
        )
        return f"https://storage.test/{bucket}/{key}?X-Amz-Expires={expiry_seconds}"

    async def generate_presigned_download_url(self, bucket: str, key: str, expiry_seconds: int) -> str:
        return f"https://storage.test/{bucket}/{key}?download=1&X-Amz-Expires={expiry_seconds}"

    async def list_keys(self, bucket: str, prefix: str) -> list[str]:
        return [key for key in self.keys(bucket) if key.startswith(prefix)]

    async def get_object_size(self, bucket: str, key: str) -> Optional[int]:
        return self.objects.get((bucket, key))

    async def delete_key(self, bucket: str, key: str) -> None:
        if self.fail_delete:
            raise StorageIntegrationError(f"cannot delete {key}")
        self.objects.pop((bucket, key), None)

    async def delete_keys_by_prefix(self, bucket: str, prefix: str) -> int:
        keys = await self.list_keys(bucket, prefix)
        for key in keys:
            await self.delete_key(bucket, key)
        return len(keys)


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="test")


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def run(session_factory, storage, settings) -> Callable[[Callable[[TemplateService], Awaitable[Any]]], Awaitable[Any]]:
    """Run one service call in its own session, committing on success."""

    async def _run(action: Callable[[TemplateService], Awaitable[Any]]) -> Any:
        async with session_factory() as session:
            service = TemplateService(SqlTemplateRepository(session), storage, settings)
            try:
                result = await action(service)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            return result

    return _run
