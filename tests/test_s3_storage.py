"""Tests for S3StorageIntegration with a mocked boto3 client."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from templatehub.core.config import StorageSettings
from templatehub.domain.templates import StorageIntegrationError
from templatehub.infrastructure.storage import S3StorageIntegration


def client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def store(client) -> S3StorageIntegration:
    return S3StorageIntegration(StorageSettings(), client=client)


def test_client_is_built_lazily_from_settings():
    settings = StorageSettings(endpoint_url="http://minio:9000", access_key="ak", secret_key="sk")
    with patch("templatehub.infrastructure.storage.s3.boto3.client") as factory:
        store = S3StorageIntegration(settings)
        factory.assert_not_called()

        assert store.client is factory.return_value
        assert store.client is factory.return_value

    factory.assert_called_once()
    args, kwargs = factory.call_args
    assert args == ("s3",)
    assert kwargs["endpoint_url"] == "http://minio:9000"
    assert kwargs["aws_access_key_id"] == "ak"
    assert kwargs["aws_secret_access_key"] == "sk"


@pytest.mark.asyncio
async def test_ensure_bucket_exists_skips_create_when_present(store, client):
    await store.ensure_bucket_exists("templates")

    client.head_bucket.assert_called_once_with(Bucket="templates")
    client.create_bucket.assert_not_called()


@pytest.mark.asyncio
async def test_ensure_bucket_exists_creates_missing_bucket(store, client):
    client.head_bucket.side_effect = client_error("404", "HeadBucket")

    await store.ensure_bucket_exists("templates")

    client.create_bucket.assert_called_once_with(Bucket="templates")


@pytest.mark.asyncio
async def test_ensure_bucket_exists_tolerates_create_race(store, client):
    client.head_bucket.side_effect = client_error("NoSuchBucket", "HeadBucket")
    client.create_bucket.side_effect = client_error("BucketAlreadyOwnedByYou", "CreateBucket")

    await store.ensure_bucket_exists("templates")


@pytest.mark.asyncio
async def test_ensure_bucket_exists_wraps_failures(store, client):
    client.head_bucket.side_effect = client_error("AccessDenied", "HeadBucket")

    with pytest.raises(StorageIntegrationError, match="templates"):
        await store.ensure_bucket_exists("templates")


@pytest.mark.asyncio
async def test_presigned_upload_url_is_scoped_to_key_and_type(store, client):
    client.generate_presigned_url.return_value = "https://minio/templates/contract/V1/Raw/a.zip?sig"

    url = await store.generate_presigned_upload_url(
        "templates", "contract/V1/Raw/a.zip", 900, "application/zip"
    )

    assert url == "https://minio/templates/contract/V1/Raw/a.zip?sig"
    client.generate_presigned_url.assert_called_once_with(
        ClientMethod="put_object",
        Params={"Bucket": "templates", "Key": "contract/V1/Raw/a.zip", "ContentType": "application/zip"},
        ExpiresIn=900,
    )


@pytest.mark.asyncio
async def test_presigned_download_url(store, client):
    client.generate_presigned_url.return_value = "https://minio/get"

    assert await store.generate_presigned_download_url("templates", "k", 60) == "https://minio/get"
    assert client.generate_presigned_url.call_args.kwargs["ClientMethod"] == "get_object"


@pytest.mark.asyncio
async def test_presign_failure_is_wrapped(store, client):
    client.generate_presigned_url.side_effect = EndpointConnectionError(endpoint_url="http://minio:9000")

    with pytest.raises(StorageIntegrationError):
        await store.generate_presigned_upload_url("templates", "k", 60)


@pytest.mark.asyncio
async def test_list_keys_follows_pagination(store, client):
    paginator = MagicMock()
    paginator.paginate.return_value = [
        {"Contents": [{"Key": "contract/V1/Raw/a.zip"}, {"Key": "contract/V2/Raw/b.zip"}]},
        {"Contents": [{"Key": "contract/V3/Raw/c.zip"}]},
        {},
    ]
    client.get_paginator.return_value = paginator

    keys = await store.list_keys("templates", "contract/")

    assert keys == ["contract/V1/Raw/a.zip", "contract/V2/Raw/b.zip", "contract/V3/Raw/c.zip"]
    client.get_paginator.assert_called_once_with("list_objects_v2")
    paginator.paginate.assert_called_once_with(Bucket="templates", Prefix="contract/")


@pytest.mark.asyncio
async def test_get_object_size(store, client):
    client.head_object.return_value = {"ContentLength": 1234}
    assert await store.get_object_size("templates", "k") == 1234

    client.head_object.side_effect = client_error("404")
    assert await store.get_object_size("templates", "k") is None


@pytest.mark.asyncio
async def test_delete_keys_by_prefix_deletes_each_key(store, client):
    paginator = MagicMock()
    paginator.paginate.return_value = [{"Contents": [{"Key": "contract/a"}, {"Key": "contract/b"}]}]
    client.get_paginator.return_value = paginator

    assert await store.delete_keys_by_prefix("templates", "contract/") == 2

    deleted = [call.kwargs["Key"] for call in client.delete_object.call_args_list]
    assert deleted == ["contract/a", "contract/b"]


@pytest.mark.asyncio
async def test_delete_keys_by_prefix_reports_partial_failure(store, client):
    paginator = MagicMock()
    paginator.paginate.return_value = [{"Contents": [{"Key": "contract/a"}, {"Key": "contract/b"}]}]
    client.get_paginator.return_value = paginator
    client.delete_object.side_effect = [client_error("AccessDenied", "DeleteObject"), {}]

    with pytest.raises(StorageIntegrationError, match="1 of 2"):
        await store.delete_keys_by_prefix("templates", "contract/")

    assert client.delete_object.call_count == 2
