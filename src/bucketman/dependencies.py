"""FastAPI dependency injection for the storage manager."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from bucketman.config.storage_config import StorageConfig
from bucketman.storage.storage_manager import StorageManager


@lru_cache(maxsize=1)
def get_storage_config() -> StorageConfig:
    """Reads STORAGE_* once per process; a missing field raises ConfigurationError."""
    return StorageConfig.from_env()


@lru_cache(maxsize=1)
def get_storage_manager() -> StorageManager:
    """Process-wide StorageManager sharing one lazily built S3 client."""
    return StorageManager(get_storage_config())


StorageManagerDep = Annotated[StorageManager, Depends(get_storage_manager)]
