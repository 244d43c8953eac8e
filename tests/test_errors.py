"""Tests for the storage exception hierarchy."""

import pytest

from bucketman.errors import (
    ClientConstructionError,
    ConfigurationError,
    DeleteError,
    StorageError,
    UnexpectedError,
    UploadError,
)


@pytest.mark.parametrize("error_type", [ConfigurationError, ClientConstructionError, UploadError, DeleteError, UnexpectedError])
def test_all_errors_share_base(error_type):
    assert issubclass(error_type, StorageError)


def test_configuration_error_names_field():
    error = ConfigurationError("bucket")
    assert error.field == "bucket"
    assert str(error) == "StorageConfig.bucket cannot be empty."
    assert error.details == {"field": "bucket"}


def test_upload_error_keeps_cause():
    cause = OSError("connection reset")
    error = UploadError("dir/a.txt", cause)
    assert error.cause is cause
    assert error.message == "Failed to upload object 'dir/a.txt'"


def test_unexpected_error_message():
    assert "status 500" in str(UnexpectedError("https://x/a", status_code=500))
    assert "TimeoutError" in str(UnexpectedError("https://x/a", TimeoutError()))
