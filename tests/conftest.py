from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest
import requests

from bucketman.config.storage_config import StorageConfig
from bucketman.storage.storage_manager import StorageManager

AWS_ENDPOINT = "https://s3.eu-west-1.amazonaws.com"


def make_response(status_code: int, url: str = "https://example.test/object") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.raw = io.BytesIO(b"")
    return response


@pytest.fixture()
def config() -> StorageConfig:
    return StorageConfig(key="AKIATEST", secret="s3cr3t", bucket="media-bucket", region="eu-west-1")


@pytest.fixture()
def s3_client() -> MagicMock:
    client = MagicMock(name="s3_client")
    client.meta.endpoint_url = AWS_ENDPOINT
    client.delete_object.return_value = {}
    return client


@pytest.fixture()
def http_session() -> MagicMock:
    session = MagicMock(spec=requests.Session)
    session.get.return_value = make_response(200)
    return session


@pytest.fixture()
def manager(config, s3_client, http_session) -> StorageManager:
    return StorageManager(config, client_factory=lambda _config: s3_client, http_session=http_session)
