from unittest.mock import AsyncMock

import pytest

from flowtrack.services.notifier import MemoryNotifier
from flowtrack.services.records import FileService, TaskService
from flowtrack.services.uploader import UploadSDKProvider


def envelope(success=True, data=None, results=None, message=None):
    """Build a backend response envelope"""
    response = {"success": success}
    if data is not None:
        response["data"] = data
    if results is not None:
        response["results"] = results
    if message is not None:
        response["message"] = message
    return response


@pytest.fixture
def apper_client():
    return AsyncMock()


@pytest.fixture
def notifier():
    return MemoryNotifier(ttl_seconds=60)


@pytest.fixture
def sdk_provider():
    # No SDK registered, so file conversion falls back to the built-in converter
    return UploadSDKProvider()


@pytest.fixture
def file_service(apper_client, notifier, sdk_provider):
    return FileService(
        client_provider=lambda: apper_client,
        notifier=notifier,
        sdk_provider=sdk_provider,
    )


@pytest.fixture
def task_service(apper_client, notifier, file_service):
    return TaskService(
        client_provider=lambda: apper_client,
        notifier=notifier,
        file_service=file_service,
    )
