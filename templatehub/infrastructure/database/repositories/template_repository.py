"""SQLAlchemy implementation for the template repository.

A template and its versions are stored as one document: writes replace the
template row and its version rows together, and status histories are embedded
as JSON on their owning rows. ``update`` is a compare-and-swap on the
template's ``revision`` column.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from templatehub.db.models import Template as TemplateModel
from templatehub.db.models import TemplateVersion as TemplateVersionModel
from templatehub.domain.common.repository import AsyncRepository
from templatehub.domain.templates.exceptions import ConcurrencyConflictError
from templatehub.domain.templates.models import StatusHistoryEntry, Template, TemplateVersion


class SqlTemplateRepository(AsyncRepository[TemplateModel]):
    async def get_by_id(self, template_id: str) -> Template | None:
        model = await self.fetch_first(self._select().where(TemplateModel.id == template_id))
        return self._to_domain(model) if model else None

    async def get_by_name(self, name: str) -> Template | None:
        model = await self.fetch_first(self._select().where(TemplateModel.name == name))
        return self._to_domain(model) if model else None

    async def list_all(self) -> Sequence[Template]:
        models = await self.fetch_all(self._select().order_by(TemplateModel.created_at.desc()))
        return [self._to_domain(model) for model in models]

    async def create(self, template: Template) -> Template:
        model = TemplateModel(
            id=template.id,
            revision=1,
            versions=[self._version_to_model(template.id, version) for version in template.versions],
            **self._template_values(template),
        )
        try:
            await self.add(model)
        except IntegrityError as exc:
            raise ConcurrencyConflictError(f"Template '{template.name}' already exists.") from exc
        template.revision = 1
        return template

    async def update(self, template: Template) -> bool:
        expected = template.revision
        stmt = (
            update(TemplateModel)
            .where(TemplateModel.id == template.id)
            .where(TemplateModel.revision == expected)
            .values(revision=expected + 1, **self._template_values(template))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            exists = await self.session.scalar(select(TemplateModel.id).where(TemplateModel.id == template.id))
            if exists is None:
                return False
            raise ConcurrencyConflictError(
                f"Template '{template.name}' was modified concurrently (expected revision {expected})."
            )

        await self._replace_versions(template)
        template.revision = expected + 1
        return True

    async def delete(self, template_id: str) -> bool:
        # version rows go first; SQLite does not enforce ON DELETE CASCADE by default
        await self.delete_where(TemplateVersionModel, TemplateVersionModel.template_id == template_id)
        return await self.delete_where(TemplateModel, TemplateModel.id == template_id) > 0

    async def _replace_versions(self, template: Template) -> None:
        rows = await self.session.execute(
            select(TemplateVersionModel).where(TemplateVersionModel.template_id == template.id)
        )
        existing = {model.id: model for model in rows.scalars().all()}

        keep_ids = {version.id for version in template.versions}
        for version_id, model in existing.items():
            if version_id not in keep_ids:
                await self.session.delete(model)

        for version in template.versions:
            model = existing.get(version.id)
            if model is None:
                self.session.add(self._version_to_model(template.id, version))
                continue
            for key, value in self._version_values(version).items():
                setattr(model, key, value)
        await self.session.flush()

    @staticmethod
    def _select():
        return (
            select(TemplateModel)
            .options(selectinload(TemplateModel.versions))
            .execution_options(populate_existing=True)
        )

    @staticmethod
    def _template_values(template: Template) -> dict[str, Any]:
        return {
            "name": template.name,
            "description": template.description,
            "version": template.version,
            "is_active": template.is_active,
            "status_history": _history_to_json(template.status_history),
            "created_at": template.created_at,
            "updated_at": template.updated_at,
        }

    @staticmethod
    def _version_values(version: TemplateVersion) -> dict[str, Any]:
        return {
            "version_number": version.version_number,
            "file_name": version.file_name,
            "file_size": version.file_size,
            "upload_url": version.upload_url,
            "upload_url_expires_at": version.upload_url_expires_at,
            "storage_path": version.storage_path,
            "is_active": version.is_active,
            "status_history": _history_to_json(version.status_history),
            "created_at": version.created_at,
            "updated_at": version.updated_at,
        }

    @classmethod
    def _version_to_model(cls, template_id: str, version: TemplateVersion) -> TemplateVersionModel:
        return TemplateVersionModel(id=version.id, template_id=template_id, **cls._version_values(version))

    @staticmethod
    def _to_domain(model: TemplateModel) -> Template:
        versions = [
            TemplateVersion.restore(
                id=v.id,
                version_number=v.version_number,
                file_name=v.file_name,
                storage_path=v.storage_path,
                upload_url=v.upload_url,
                upload_url_expires_at=_as_utc(v.upload_url_expires_at),
                file_size=v.file_size or 0,
                is_active=bool(v.is_active),
                created_at=_as_utc(v.created_at),
                updated_at=_as_utc(v.updated_at),
                status_history=_history_from_json(v.status_history),
            )
            for v in sorted(model.versions, key=lambda item: item.version_number)
        ]
        return Template.restore(
            id=model.id,
            name=model.name,
            description=model.description or "",
            version=model.version,
            is_active=bool(model.is_active),
            created_at=_as_utc(model.created_at),
            updated_at=_as_utc(model.updated_at),
            revision=model.revision,
            versions=versions,
            status_history=_history_from_json(model.status_history),
        )


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        # SQLite hands back naive datetimes
        return value.replace(tzinfo=timezone.utc)
    return value


def _history_to_json(entries: Iterable[StatusHistoryEntry]) -> list[dict[str, Any]]:
    return [
        {
            "is_active": entry.is_active,
            "reason": entry.reason,
            "changed_at": entry.changed_at.isoformat(),
            "system_generated": entry.system_generated,
        }
        for entry in entries
    ]


def _history_from_json(raw: Optional[list[dict[str, Any]]]) -> list[StatusHistoryEntry]:
    return [
        StatusHistoryEntry(
            is_active=bool(item["is_active"]),
            reason=item["reason"],
            changed_at=_as_utc(datetime.fromisoformat(item["changed_at"])),
            system_generated=bool(item.get("system_generated", False)),
        )
        for item in raw or []
    ]
