"""Object store integrations."""

from .s3 import S3StorageIntegration

__all__ = ["S3StorageIntegration"]
