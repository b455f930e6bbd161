from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from templatehub.core.config import Settings
from templatehub.core.container import ApplicationContainer
from templatehub.infrastructure.storage import S3StorageIntegration


def make_container(client: MagicMock) -> ApplicationContainer:
    settings = Settings(environment="test")
    return ApplicationContainer(settings=settings, storage=S3StorageIntegration(settings.storage, client=client))


@pytest.mark.asyncio
async def test_startup_creates_tables_and_checks_bucket():
    client = MagicMock()
    container = make_container(client)

    with patch("templatehub.core.container.init_db", new=AsyncMock()) as init_db:
        await container.startup()

    init_db.assert_awaited_once()
    client.head_bucket.assert_called_once_with(Bucket="templates")


@pytest.mark.asyncio
async def test_startup_tolerates_unreachable_storage(caplog):
    client = MagicMock()
    client.head_bucket.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "HeadBucket")
    container = make_container(client)

    with patch("templatehub.core.container.init_db", new=AsyncMock()):
        await container.startup()

    assert "Object storage not ready" in caplog.text
