"""Collaborator protocols for template persistence and object storage."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import Template


class TemplateRepository(Protocol):
    async def get_by_id(self, template_id: str) -> Template | None:
        ...

    async def get_by_name(self, name: str) -> Template | None:
        ...

    async def list_all(self) -> Sequence[Template]:
        ...

    async def create(self, template: Template) -> Template:
        ...

    async def update(self, template: Template) -> bool:
        """Replace the stored document; ``False`` when no record was modified."""
        ...

    async def delete(self, template_id: str) -> bool:
        ...


class StorageIntegration(Protocol):
    async def ensure_bucket_exists(self, bucket: str) -> None:
        ...

    async def generate_presigned_upload_url(
        self,
        bucket: str,
        key: str,
        expiry_seconds: int,
        content_type: str | None = None,
    ) -> str:
        ...

    async def generate_presigned_download_url(self, bucket: str, key: str, expiry_seconds: int) -> str:
        ...

    async def list_keys(self, bucket: str, prefix: str) -> Sequence[str]:
        ...

    async def get_object_size(self, bucket: str, key: str) -> int | None:
        ...

    async def delete_key(self, bucket: str, key: str) -> None:
        ...

    async def delete_keys_by_prefix(self, bucket: str, prefix: str) -> int:
        ...
