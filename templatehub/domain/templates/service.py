"""Application service handling template upload, status and deletion workflows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from templatehub.core.config import Settings, get_settings

from .exceptions import (
    InactiveVersionError,
    InvalidFileExtensionError,
    InvalidTemplateNameError,
    LastVersionRemovalError,
    StorageIntegrationError,
    TemplateNotFoundError,
    UploadedObjectNotFoundError,
)
from .models import DownloadGrant, Template, TemplateVersion, UploadGrant, utcnow
from .paths import (
    build_storage_path,
    file_extension,
    max_version_in_keys,
    next_version_number,
    sanitize_file_name,
    template_prefix,
)
from .repository import StorageIntegration, TemplateRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TemplateService:
    repository: TemplateRepository
    storage: StorageIntegration
    settings: Settings = field(default_factory=get_settings)

    @classmethod
    def with_session(cls, session: AsyncSession, storage: StorageIntegration) -> "TemplateService":
        from templatehub.infrastructure.database.repositories import SqlTemplateRepository

        return cls(SqlTemplateRepository(session), storage)

    @property
    def bucket(self) -> str:
        return self.settings.storage.bucket

    async def request_upload(
        self,
        *,
        template_name: str,
        description: Optional[str],
        file_name: str,
    ) -> UploadGrant:
        """Allocate the next version of ``template_name`` and grant a direct upload slot.

        Nothing is persisted until the object store has issued the upload URL.
        Calling this twice for the same name creates two versions.
        """
        template_name = self._validate_template_name(template_name)
        clean_name = sanitize_file_name(file_name)
        extension = self._validate_extension(clean_name)
        content_type = self.settings.uploads.content_types.get(
            extension, self.settings.uploads.default_content_type
        )

        await self.storage.ensure_bucket_exists(self.bucket)

        template = await self.repository.get_by_name(template_name)
        is_new = template is None
        if template is None:
            keys = await self.storage.list_keys(self.bucket, template_prefix(template_name))
            existing_max = max_version_in_keys(template_name, keys)
            if existing_max:
                logger.warning(
                    "Found objects up to V%s for unknown template %s; continuing numbering after them",
                    existing_max,
                    template_name,
                )
            template = Template.create(template_name, description or "", version=existing_max)

        version_number = next_version_number(template.version)
        storage_path = build_storage_path(template_name, version_number, clean_name)
        expiry = self.settings.storage.upload_url_expiry_seconds
        expires_at = utcnow() + timedelta(seconds=expiry)
        upload_url = await self.storage.generate_presigned_upload_url(
            self.bucket, storage_path, expiry, content_type
        )

        version = template.add_version(clean_name, storage_path, upload_url, expires_at)
        if is_new:
            await self.repository.create(template)
        else:
            if description and description != template.description:
                template.update_description(description)
            await self._save(template)

        logger.info(
            "Granted upload for template %s version %s at %s",
            template.id,
            version.version_number,
            storage_path,
        )
        return UploadGrant(
            template_id=template.id,
            template_name=template.name,
            upload_url=upload_url,
            expires_at=expires_at,
            storage_path=storage_path,
            version_number=version.version_number,
            created_at=template.created_at,
            version_id=version.id,
        )

    async def get_template(
        self,
        template_id: str,
        version_id: Optional[str] = None,
    ) -> tuple[Template, Optional[TemplateVersion]]:
        template = await self._load(template_id)
        if version_id is None:
            return template, None
        return template, self._require_version(template, version_id)

    async def list_templates(self) -> list[Template]:
        return list(await self.repository.list_all())

    async def change_status(
        self,
        template_id: str,
        *,
        is_active: bool,
        reason: Optional[str] = None,
        version_id: Optional[str] = None,
    ) -> Template:
        """Toggle one version (``version_id`` given) or every version of a template."""
        template = await self._load(template_id)
        reason = reason.strip() if reason else None
        kwargs = {"reason": reason} if reason else {}

        if version_id is not None:
            self._require_version(template, version_id)
            if is_active:
                template.activate_version(version_id, **kwargs)
            else:
                template.deactivate_version(version_id, **kwargs)
        elif is_active:
            template.activate_all_versions(**kwargs)
        else:
            template.deactivate_all_versions(**kwargs)

        await self._save(template)
        logger.info(
            "Template %s%s set is_active=%s",
            template.id,
            f" version {version_id}" if version_id else "",
            is_active,
        )
        return template

    async def confirm_upload(self, template_id: str, version_id: str) -> TemplateVersion:
        """Record the size of an object the client uploaded through its grant."""
        template = await self._load(template_id)
        version = self._require_version(template, version_id)

        size = await self.storage.get_object_size(self.bucket, version.storage_path)
        if size is None:
            raise UploadedObjectNotFoundError(template_id, version_id, version.storage_path)

        template.update_version_file_info(version_id, size)
        await self._save(template)
        return version

    async def request_download(self, template_id: str, version_id: Optional[str] = None) -> DownloadGrant:
        template = await self._load(template_id)
        if version_id is not None:
            version = self._require_version(template, version_id)
            if not version.is_active:
                raise InactiveVersionError(f"Version {version.version_number} of '{template.name}' is inactive.")
        else:
            version = template.get_latest_active_version()
            if version is None:
                raise TemplateNotFoundError(template_id, message=f"Template '{template.name}' has no active version.")

        expiry = self.settings.storage.download_url_expiry_seconds
        expires_at = utcnow() + timedelta(seconds=expiry)
        url = await self.storage.generate_presigned_download_url(self.bucket, version.storage_path, expiry)
        return DownloadGrant(
            template_id=template.id,
            version_id=version.id,
            version_number=version.version_number,
            file_name=version.file_name,
            download_url=url,
            expires_at=expires_at,
        )

    async def remove_template(self, template_id: str) -> bool:
        """Delete a template's objects (best effort) and then its record.

        Returns whether the record was deleted.
        """
        template = await self._load(template_id)
        prefix = template_prefix(template.name)
        try:
            deleted = await self.storage.delete_keys_by_prefix(self.bucket, prefix)
            logger.info("Deleted %s objects under %s", deleted, prefix)
        except StorageIntegrationError as exc:
            logger.warning("Failed to delete objects under %s for template %s: %s", prefix, template_id, exc)

        removed = await self.repository.delete(template_id)
        if removed:
            logger.info("Removed template %s (%s)", template_id, template.name)
        else:
            logger.warning("Template %s disappeared before it could be removed", template_id)
        return removed

    async def remove_version(self, template_id: str, version_id: str) -> Template:
        template = await self._load(template_id)
        version = self._require_version(template, version_id)
        if len(template.versions) <= 1:
            raise LastVersionRemovalError(
                f"Cannot remove version {version.version_number}: a template must keep at least one version."
            )

        try:
            await self.storage.delete_key(self.bucket, version.storage_path)
        except StorageIntegrationError as exc:
            logger.warning("Failed to delete object %s for version %s: %s", version.storage_path, version_id, exc)

        template.remove_version(version_id)
        await self._save(template)
        logger.info("Removed version %s (V%s) from template %s", version_id, version.version_number, template_id)
        return template

    async def _load(self, template_id: str) -> Template:
        template = await self.repository.get_by_id(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    async def _save(self, template: Template) -> None:
        if not await self.repository.update(template):
            raise TemplateNotFoundError(template.id)

    @staticmethod
    def _require_version(template: Template, version_id: str) -> TemplateVersion:
        version = template.get_version_by_id(version_id)
        if version is None:
            raise TemplateNotFoundError(template.id, version_id)
        return version

    @staticmethod
    def _validate_template_name(template_name: str) -> str:
        name = (template_name or "").strip()
        if not name:
            raise InvalidTemplateNameError("Template name is required.")
        if "/" in name or "\\" in name or name in {".", ".."}:
            raise InvalidTemplateNameError(f"Template name '{name}' may not contain path separators.")
        return name

    def _validate_extension(self, file_name: Optional[str]) -> str:
        if not file_name:
            raise InvalidFileExtensionError("File name is required.")
        extension = file_extension(file_name)
        if not extension or extension == ".":
            raise InvalidFileExtensionError(f"File '{file_name}' has no extension.")
        allowed = {ext.lower() for ext in self.settings.uploads.allowed_extensions}
        if extension not in allowed:
            raise InvalidFileExtensionError(
                f"Extension '{extension}' is not accepted; allowed: {', '.join(sorted(allowed))}."
            )
        return extension
