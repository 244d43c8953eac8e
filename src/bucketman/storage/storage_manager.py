from __future__ import annotations
import os
import re
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Iterator, Mapping
from urllib.parse import quote, urlsplit
import boto3
import requests
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from bucketman.config.storage_config import StorageConfig
from bucketman.errors import ClientConstructionError, DeleteError, UnexpectedError, UploadError
from bucketman.logging_config import get_logger, with_context

DEFAULT_ACL = "public-read"
USER_AGENT = "bucketman"
_VIRTUAL_HOST_BUCKET = re.compile(r"^[a-z0-9][a-z0-9-]{1,61}[a-z0-9]$")

logger = get_logger(__name__)

ClientFactory = Callable[[StorageConfig], Any]


def build_s3_client(config: StorageConfig):
    client_kwargs: dict[str, Any] = {
        "aws_access_key_id": config.key,
        "aws_secret_access_key": config.secret,
    }
    if config.region:
        client_kwargs["region_name"] = config.region
    if config.enable_v4:
        client_kwargs["config"] = Config(signature_version="s3v4")
    if config.endpoint:
        client_kwargs["endpoint_url"] = config.endpoint
    return boto3.client("s3", **client_kwargs)


def merge_options(defaults: Mapping[str, Any], overrides: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge put parameters; overrides win, nested mappings merge key by key."""
    merged = dict(defaults)
    for key, value in (overrides or {}).items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = merge_options(current, value)
        else:
            merged[key] = value
    return merged


def _source_path(upload: Any) -> str | os.PathLike | None:
    if isinstance(upload, (str, os.PathLike)):
        return upload
    for attr in ("temp_name", "tempName"):
        path = getattr(upload, attr, None)
        if path:
            return path
    return None


@contextmanager
def _open_source(upload: Any) -> Iterator[BinaryIO]:
    """Yield a readable binary body for an upload; only files opened here get closed."""
    path = _source_path(upload)
    if path is not None:
        with open(path, "rb") as body:
            yield body
        return
    stream = getattr(upload, "file", upload)
    if not hasattr(stream, "read"):
        raise TypeError(f"Cannot upload object of type {type(upload).__name__!r}: expected a path or a readable stream.")
    yield stream


@dataclass(frozen=True)
class ExistenceCheck:
    url: str
    status_code: int
    exists: bool

    def __bool__(self) -> bool:
        return self.exists


class StorageManager:
    def __init__(
        self,
        config: StorageConfig,
        client_factory: ClientFactory | None = None,
        http_session: requests.Session | None = None,
        http_timeout: float = 10.0,
    ):
        self.config = config
        self.bucket = config.bucket
        self.http_timeout = http_timeout
        self._client_factory = client_factory or build_s3_client
        self._client = None
        self._http_session = http_session
        self._lock = threading.Lock()
        self.logger = with_context(logger, bucket=config.bucket)

    def get_client(self):
        """Return the S3 client, building it on first use.

        Concurrent first callers are serialised so exactly one client is built.
        """
        if self._client is not None:
            return self._client
        with self._lock:
            if self._client is None:
                try:
                    self._client = self._client_factory(self.config)
                except (BotoCoreError, ValueError) as exc:
                    self.logger.exception("S3 client construction failed: region=%s endpoint=%s", self.config.region, self.config.endpoint)
                    raise ClientConstructionError(f"Could not build S3 client: {exc}", {"bucket": self.bucket}) from exc
                self.logger.info(
                    "Created S3 client: region=%s signature=%s endpoint=%s",
                    self.config.region or "default",
                    "s3v4" if self.config.enable_v4 else "default",
                    self.config.endpoint or "aws",
                )
        return self._client

    def save(self, upload: Any, name: str, options: Mapping[str, Any] | None = None) -> None:
        """Upload a file, uploaded-file object or binary stream to key ``name``.

        The object is public-read unless ``options`` says otherwise; any other
        put_object parameter (ContentType, Metadata, ...) can be passed the same way.
        """
        self._put(upload, name, options)

    def upload_file(
        self,
        file_path: str | os.PathLike,
        bucket_path: str,
        file_name: str,
        old_file_name: str | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        """Upload ``file_path`` to ``bucket_path + file_name``.

        When ``old_file_name`` is given the previous object is deleted first; if
        that delete fails the DeleteError propagates and nothing is uploaded.
        """
        if old_file_name:
            self.delete(bucket_path + old_file_name)
        self._put(file_path, bucket_path + file_name, options)

    def delete(self, name: str) -> bool:
        """Delete ``name``; True when the bucket recorded a delete marker instead."""
        client = self.get_client()
        try:
            response = client.delete_object(Bucket=self.bucket, Key=name)
        except (ClientError, BotoCoreError) as exc:
            self.logger.exception("Failed to delete object: key=%s", name)
            raise DeleteError(name, exc) from exc
        delete_marker = bool(response.get("DeleteMarker", False))
        self.logger.info("Deleted object: key=%s delete_marker=%s", name, delete_marker)
        return delete_marker

    def check_exists(self, name: str) -> ExistenceCheck:
        """Probe the public url of ``name`` with an anonymous GET.

        A 4xx answer means "not there" (or not public); anything else that is
        not 2xx raises UnexpectedError.
        """
        url = self.get_url(name)
        try:
            response = self._session().get(url, timeout=self.http_timeout, stream=True)
        except requests.RequestException as exc:
            self.logger.warning("Existence check request failed: key=%s url=%s", name, url, exc_info=True)
            raise UnexpectedError(url, exc) from exc
        with response:
            status_code = response.status_code

        status_class = status_code // 100
        if status_class == 2:
            result = ExistenceCheck(url=url, status_code=status_code, exists=True)
        elif status_class == 4:
            result = ExistenceCheck(url=url, status_code=status_code, exists=False)
        else:
            raise UnexpectedError(url, status_code=status_code)
        self.logger.debug("Existence check: key=%s status=%s exists=%s", name, status_code, result.exists)
        return result

    def file_exists(self, name: str) -> bool:
        """Only reliable for public objects: private ones answer 403 and read as missing."""
        return self.check_exists(name).exists

    def get_url(self, name: str) -> str:
        # Anonymous object url; generate_presigned_url would append a signature query.
        endpoint = urlsplit(self.get_client().meta.endpoint_url)
        key = quote(name, safe="/~")
        if not self.config.endpoint and _VIRTUAL_HOST_BUCKET.match(self.bucket):
            url = f"{endpoint.scheme}://{self.bucket}.{endpoint.netloc}/{key}"
        else:
            url = f"{endpoint.scheme}://{endpoint.netloc}{endpoint.path.rstrip('/')}/{self.bucket}/{key}"
        self.logger.debug("Computed object url: key=%s url=%s", name, url)
        return url

    def _put(self, upload: Any, key: str, options: Mapping[str, Any] | None) -> None:
        params = merge_options({"Bucket": self.bucket, "Key": key, "ACL": DEFAULT_ACL}, options)
        params.pop("Body", None)
        client = self.get_client()
        with _open_source(upload) as body:
            try:
                client.put_object(Body=body, **params)
            except (ClientError, BotoCoreError) as exc:
                self.logger.exception("Failed to upload object: key=%s", params["Key"])
                raise UploadError(params["Key"], exc) from exc
        self.logger.info("Uploaded object: key=%s acl=%s", params["Key"], params.get("ACL"))

    def _session(self) -> requests.Session:
        if self._http_session is None:
            with self._lock:
                if self._http_session is None:
                    session = requests.Session()
                    session.headers.update({"User-Agent": USER_AGENT})
                    self._http_session = session
        return self._http_session
