"""Template domain specific exceptions."""

from __future__ import annotations


class TemplateError(Exception):
    """Base class for template domain errors."""


class TemplateNotFoundError(TemplateError):
    """Raised when a template, or a version within it, cannot be found."""

    def __init__(
        self,
        template_id: str,
        version_id: str | None = None,
        message: str | None = None,
    ) -> None:
        self.template_id = template_id
        self.version_id = version_id
        if message is None and version_id is None:
            message = f"Template with ID '{template_id}' was not found."
        elif message is None:
            message = f"Template with ID '{template_id}' or version with ID '{version_id}' was not found."
        super().__init__(message)


class UploadedObjectNotFoundError(TemplateNotFoundError):
    """Raised when a version's object is absent from the object store."""

    def __init__(self, template_id: str, version_id: str, storage_path: str) -> None:
        super().__init__(template_id, version_id, f"No uploaded object found at '{storage_path}'.")
        self.storage_path = storage_path


class TemplateValidationError(TemplateError):
    """Raised when a request violates a template rule."""


class InvalidTemplateNameError(TemplateValidationError):
    """Raised when a template name cannot be used as a storage prefix."""


class InvalidFileExtensionError(TemplateValidationError):
    """Raised when an upload's file extension is missing or not accepted."""


class LastVersionRemovalError(TemplateValidationError):
    """Raised when removing a version would leave the template without any."""


class InactiveVersionError(TemplateValidationError):
    """Raised when a download is requested for a deactivated version."""


class StorageIntegrationError(TemplateError):
    """Raised when the object store rejects or fails a request."""


class ConcurrencyConflictError(TemplateError):
    """Raised when a template was written by someone else since it was loaded."""
