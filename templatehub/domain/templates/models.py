"""Domain models for versioned templates.

``Template`` is the aggregate root. It owns its ``TemplateVersion`` entries and
both levels of status history, and keeps ``Template.is_active`` equal to the
logical OR of its versions' flags. Nothing in this module performs I/O, and no
method raises for missing ids: lookups return ``None`` and callers check
preconditions (such as keeping at least one version) before mutating.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

TEMPLATE_CREATED = "Template created."
VERSION_CREATED = "Version created."
VERSION_ACTIVATED = "Version activated."
VERSION_DEACTIVATED = "Version deactivated."
ALL_VERSIONS_ACTIVATED = "All versions activated."
ALL_VERSIONS_DEACTIVATED = "All versions deactivated."
AUTO_ACTIVATED = "Template activated automatically (active version detected)."
AUTO_DEACTIVATED = "Template deactivated automatically (all versions inactive)."


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class StatusHistoryEntry:
    is_active: bool
    reason: str
    changed_at: datetime = field(default_factory=utcnow)
    system_generated: bool = False


@dataclass(slots=True, eq=False)
class TemplateVersion:
    id: str
    version_number: int
    file_name: str
    storage_path: str
    upload_url: Optional[str] = None
    upload_url_expires_at: Optional[datetime] = None
    file_size: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    _status_history: list[StatusHistoryEntry] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def create(
        cls,
        version_number: int,
        file_name: str,
        storage_path: str,
        upload_url: Optional[str],
        upload_url_expires_at: Optional[datetime],
    ) -> "TemplateVersion":
        version = cls(
            id=generate_id(),
            version_number=version_number,
            file_name=file_name,
            storage_path=storage_path,
            upload_url=upload_url,
            upload_url_expires_at=upload_url_expires_at,
        )
        version._status_history.append(StatusHistoryEntry(True, VERSION_CREATED, version.created_at))
        return version

    @classmethod
    def restore(
        cls,
        *,
        id: str,
        version_number: int,
        file_name: str,
        storage_path: str,
        upload_url: Optional[str],
        upload_url_expires_at: Optional[datetime],
        file_size: int,
        is_active: bool,
        created_at: datetime,
        updated_at: Optional[datetime],
        status_history: Iterable[StatusHistoryEntry] = (),
    ) -> "TemplateVersion":
        """Rebuild a version from its persisted shape."""
        version = cls(
            id=id,
            version_number=version_number,
            file_name=file_name,
            storage_path=storage_path,
            upload_url=upload_url,
            upload_url_expires_at=upload_url_expires_at,
            file_size=file_size,
            is_active=is_active,
            created_at=created_at,
            updated_at=updated_at,
        )
        version._status_history.extend(status_history)
        return version

    @property
    def status_history(self) -> tuple[StatusHistoryEntry, ...]:
        return tuple(self._status_history)

    def activate(self, reason: str = VERSION_ACTIVATED) -> None:
        self._set_status(True, reason)

    def deactivate(self, reason: str = VERSION_DEACTIVATED) -> None:
        self._set_status(False, reason)

    def update_file_info(self, file_size: int) -> None:
        self.file_size = file_size
        self.updated_at = utcnow()

    def _set_status(self, is_active: bool, reason: str) -> None:
        now = utcnow()
        self.is_active = is_active
        self._status_history.append(StatusHistoryEntry(is_active, reason, now))
        self.updated_at = now


@dataclass(slots=True, eq=False)
class Template:
    id: str
    name: str
    description: str
    version: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    # Persistence token; the repository bumps it on every successful write.
    revision: int = 0
    _versions: list[TemplateVersion] = field(default_factory=list, init=False, repr=False)
    _status_history: list[StatusHistoryEntry] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def create(cls, name: str, description: str, version: int = 0) -> "Template":
        """Start a new template.

        ``version`` seeds the counter, so the first ``add_version`` call
        allocates ``version + 1``.
        """
        template = cls(id=generate_id(), name=name, description=description, version=version)
        template._status_history.append(StatusHistoryEntry(True, TEMPLATE_CREATED, template.created_at))
        return template

    @classmethod
    def restore(
        cls,
        *,
        id: str,
        name: str,
        description: str,
        version: int,
        is_active: bool,
        created_at: datetime,
        updated_at: Optional[datetime],
        revision: int,
        versions: Iterable[TemplateVersion] = (),
        status_history: Iterable[StatusHistoryEntry] = (),
    ) -> "Template":
        """Rebuild a template from its persisted shape."""
        template = cls(
            id=id,
            name=name,
            description=description,
            version=version,
            is_active=is_active,
            created_at=created_at,
            updated_at=updated_at,
            revision=revision,
        )
        template._versions.extend(versions)
        template._status_history.extend(status_history)
        return template

    @property
    def versions(self) -> tuple[TemplateVersion, ...]:
        return tuple(self._versions)

    @property
    def status_history(self) -> tuple[StatusHistoryEntry, ...]:
        return tuple(self._status_history)

    def add_version(
        self,
        file_name: str,
        storage_path: str,
        upload_url: Optional[str],
        upload_url_expires_at: Optional[datetime],
    ) -> TemplateVersion:
        self.version += 1
        new_version = TemplateVersion.create(
            self.version,
            file_name,
            storage_path,
            upload_url,
            upload_url_expires_at,
        )
        self._versions.append(new_version)
        # A new version is active, which may revive a fully deactivated template.
        self._propagate_status()
        self.updated_at = utcnow()
        return new_version

    def get_version_by_id(self, version_id: str) -> Optional[TemplateVersion]:
        return next((v for v in self._versions if v.id == version_id), None)

    def get_version_by_number(self, version_number: int) -> Optional[TemplateVersion]:
        return next((v for v in self._versions if v.version_number == version_number), None)

    def get_latest_version(self) -> Optional[TemplateVersion]:
        return max(self._versions, key=lambda v: v.version_number, default=None)

    def get_latest_active_version(self) -> Optional[TemplateVersion]:
        active = [v for v in self._versions if v.is_active]
        return max(active, key=lambda v: v.version_number, default=None)

    def remove_version(self, version_id: str) -> bool:
        """Drop a version from the collection.

        Precondition: the caller has checked this is not the last version.
        The version counter is left untouched so numbers are never reused.
        """
        target = self.get_version_by_id(version_id)
        if target is None:
            return False
        self._versions.remove(target)
        self._propagate_status()
        self.updated_at = utcnow()
        return True

    def update_description(self, description: str) -> None:
        self.description = description
        self.updated_at = utcnow()

    def update_version_file_info(self, version_id: str, file_size: int) -> Optional[TemplateVersion]:
        target = self.get_version_by_id(version_id)
        if target is None:
            return None
        target.update_file_info(file_size)
        self.updated_at = utcnow()
        return target

    def activate_version(self, version_id: str, reason: str = VERSION_ACTIVATED) -> Optional[TemplateVersion]:
        target = self.get_version_by_id(version_id)
        if target is None:
            return None
        target.activate(reason)
        self._propagate_status()
        self.updated_at = utcnow()
        return target

    def deactivate_version(self, version_id: str, reason: str = VERSION_DEACTIVATED) -> Optional[TemplateVersion]:
        target = self.get_version_by_id(version_id)
        if target is None:
            return None
        target.deactivate(reason)
        self._propagate_status()
        self.updated_at = utcnow()
        return target

    def activate_all_versions(self, reason: str = ALL_VERSIONS_ACTIVATED) -> None:
        self._set_all(True, reason)

    def deactivate_all_versions(self, reason: str = ALL_VERSIONS_DEACTIVATED) -> None:
        self._set_all(False, reason)

    def _set_all(self, is_active: bool, reason: str) -> None:
        # Bulk changes force the template flag directly, without OR-reduction.
        for version in self._versions:
            version._set_status(is_active, reason)
        now = utcnow()
        self.is_active = is_active
        self._status_history.append(StatusHistoryEntry(is_active, reason, now))
        self.updated_at = now

    def _propagate_status(self) -> None:
        should_be_active = any(v.is_active for v in self._versions)
        if self.is_active == should_be_active:
            return
        self.is_active = should_be_active
        reason = AUTO_ACTIVATED if should_be_active else AUTO_DEACTIVATED
        self._status_history.append(StatusHistoryEntry(should_be_active, reason, system_generated=True))


@dataclass(frozen=True, slots=True)
class UploadGrant:
    template_id: str
    template_name: str
    upload_url: str
    expires_at: datetime
    storage_path: str
    version_number: int
    created_at: datetime
    version_id: str


@dataclass(frozen=True, slots=True)
class DownloadGrant:
    template_id: str
    version_id: str
    version_number: int
    file_name: str
    download_url: str
    expires_at: datetime
