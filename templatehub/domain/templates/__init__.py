"""Public exports for the template domain."""

from .exceptions import (
    ConcurrencyConflictError,
    InactiveVersionError,
    InvalidFileExtensionError,
    InvalidTemplateNameError,
    LastVersionRemovalError,
    StorageIntegrationError,
    TemplateError,
    TemplateNotFoundError,
    TemplateValidationError,
    UploadedObjectNotFoundError,
)
from .models import DownloadGrant, StatusHistoryEntry, Template, TemplateVersion, UploadGrant
from .repository import StorageIntegration, TemplateRepository
from .service import TemplateService

__all__ = [
    "ConcurrencyConflictError",
    "DownloadGrant",
    "InactiveVersionError",
    "InvalidFileExtensionError",
    "InvalidTemplateNameError",
    "LastVersionRemovalError",
    "StatusHistoryEntry",
    "StorageIntegration",
    "StorageIntegrationError",
    "Template",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateRepository",
    "TemplateService",
    "TemplateValidationError",
    "TemplateVersion",
    "UploadGrant",
    "UploadedObjectNotFoundError",
]
