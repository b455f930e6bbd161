"""S3-compatible object store integration (AWS S3, MinIO)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from templatehub.core.config import StorageSettings
from templatehub.domain.templates.exceptions import StorageIntegrationError

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3StorageIntegration:
    """Object store calls wrapped for asyncio.

    boto3 is blocking, so every call runs in a worker thread. Failures surface
    as ``StorageIntegrationError``.
    """

    def __init__(self, settings: StorageSettings, client: Any = None) -> None:
        self.settings = settings
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.settings.endpoint_url,
                aws_access_key_id=self.settings.access_key,
                aws_secret_access_key=self.settings.secret_key,
                region_name=self.settings.region,
                config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
            )
        return self._client

    async def ensure_bucket_exists(self, bucket: str) -> None:
        logger.debug("Ensuring bucket %s exists", bucket)
        try:
            await asyncio.to_thread(self.client.head_bucket, Bucket=bucket)
            return
        except ClientError as exc:
            if _error_code(exc) not in _MISSING_CODES:
                raise StorageIntegrationError(f"Failed to ensure bucket '{bucket}' exists: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageIntegrationError(f"Failed to ensure bucket '{bucket}' exists: {exc}") from exc

        try:
            await asyncio.to_thread(self.client.create_bucket, Bucket=bucket)
            logger.info("Created bucket %s", bucket)
        except ClientError as exc:
            if _error_code(exc) in {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}:
                return
            raise StorageIntegrationError(f"Failed to create bucket '{bucket}': {exc}") from exc
        except BotoCoreError as exc:
            raise StorageIntegrationError(f"Failed to create bucket '{bucket}': {exc}") from exc

    async def generate_presigned_upload_url(
        self,
        bucket: str,
        key: str,
        expiry_seconds: int,
        content_type: Optional[str] = None,
    ) -> str:
        logger.info("Generating presigned upload URL for %s/%s", bucket, key)
        params: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if content_type:
            params["ContentType"] = content_type
        return await self._presign("put_object", params, expiry_seconds)

    async def generate_presigned_download_url(self, bucket: str, key: str, expiry_seconds: int) -> str:
        logger.info("Generating presigned download URL for %s/%s", bucket, key)
        return await self._presign("get_object", {"Bucket": bucket, "Key": key}, expiry_seconds)

    async def list_keys(self, bucket: str, prefix: str) -> list[str]:
        def _list() -> list[str]:
            paginator = self.client.get_paginator("list_objects_v2")
            keys: list[str] = []
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                keys.extend(item["Key"] for item in page.get("Contents", []) if item.get("Key"))
            return keys

        try:
            keys = await asyncio.to_thread(_list)
        except (ClientError, BotoCoreError) as exc:
            raise StorageIntegrationError(f"Failed to list '{bucket}/{prefix}': {exc}") from exc
        logger.info("Found %s objects under %s/%s", len(keys), bucket, prefix)
        return keys

    async def get_object_size(self, bucket: str, key: str) -> Optional[int]:
        try:
            response = await asyncio.to_thread(self.client.head_object, Bucket=bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return None
            raise StorageIntegrationError(f"Failed to stat '{bucket}/{key}': {exc}") from exc
        except BotoCoreError as exc:
            raise StorageIntegrationError(f"Failed to stat '{bucket}/{key}': {exc}") from exc
        return int(response.get("ContentLength", 0))

    async def delete_key(self, bucket: str, key: str) -> None:
        logger.info("Deleting %s/%s", bucket, key)
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise StorageIntegrationError(f"Failed to delete '{bucket}/{key}': {exc}") from exc

    async def delete_keys_by_prefix(self, bucket: str, prefix: str) -> int:
        """Delete every key under ``prefix`` one by one; returns how many went."""
        keys = await self.list_keys(bucket, prefix)
        failed: list[str] = []
        for key in keys:
            try:
                await self.delete_key(bucket, key)
            except StorageIntegrationError as exc:
                logger.warning("%s", exc)
                failed.append(key)
        if failed:
            raise StorageIntegrationError(
                f"Failed to delete {len(failed)} of {len(keys)} objects under '{bucket}/{prefix}'"
            )
        return len(keys)

    async def _presign(self, operation: str, params: dict[str, Any], expiry_seconds: int) -> str:
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                ClientMethod=operation,
                Params=params,
                ExpiresIn=expiry_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageIntegrationError(
                f"Failed to generate presigned URL for '{params['Bucket']}/{params['Key']}': {exc}"
            ) from exc
