"""Pydantic schemas used across the project."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadUrlRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    file_name: str = Field(..., min_length=1, max_length=255)


class UploadUrlResponse(BaseModel):
    template_id: str
    template_name: str
    upload_url: str
    expires_at: datetime
    storage_path: str
    version_number: int
    created_at: datetime
    version_id: str

    model_config = ConfigDict(from_attributes=True)


class DownloadUrlResponse(BaseModel):
    template_id: str
    version_id: str
    version_number: int
    file_name: str
    download_url: str
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChangeStatusRequest(BaseModel):
    is_active: bool
    reason: Optional[str] = Field(default=None, max_length=500)


class StatusHistoryEntryResponse(BaseModel):
    is_active: bool
    reason: str
    changed_at: datetime
    system_generated: bool = False

    model_config = ConfigDict(from_attributes=True)


class TemplateVersionResponse(BaseModel):
    id: str
    version_number: int
    file_name: str
    file_size: int
    storage_path: str
    upload_url: Optional[str] = None
    upload_url_expires_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    status_history: list[StatusHistoryEntryResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class TemplateResponse(BaseModel):
    id: str
    name: str
    description: str
    version: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    versions: list[TemplateVersionResponse] = Field(default_factory=list)
    status_history: list[StatusHistoryEntryResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class TemplateListResponse(BaseModel):
    total: int
    templates: list[TemplateResponse]
