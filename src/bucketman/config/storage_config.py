from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from bucketman.config.env import parse_bool
from bucketman.errors import ConfigurationError

REQUIRED_FIELDS = ("key", "secret", "bucket")


class StorageOptions(BaseModel):
    """Component-style options, as they appear in an application's config mapping."""
    model_config = ConfigDict(extra='ignore', populate_by_name=True)
    key: Optional[str] = Field(None, description="Access key id.")
    secret: Optional[str] = Field(None, description="Secret access key.")
    bucket: Optional[str] = Field(None, description="Target bucket name.")
    region: Optional[str] = Field(None, description="Storage service region.")
    enable_v4: bool = Field(False, alias="enableV4", description="Sign requests with s3v4.")
    endpoint: Optional[str] = Field(None, description="Custom S3-compatible endpoint url.")


@dataclass(frozen=True)
class StorageConfig:
    key: str
    secret: str
    bucket: str
    region: str | None = None
    enable_v4: bool = False
    endpoint: str | None = None

    def __post_init__(self):
        for field in REQUIRED_FIELDS:
            value = getattr(self, field)
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(field)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> StorageConfig:
        try:
            parsed = StorageOptions.model_validate(dict(options))
        except ValidationError as exc:
            error = exc.errors()[0]
            field = str(error["loc"][0]) if error["loc"] else "options"
            raise ConfigurationError(field, f"StorageConfig.{field} is invalid: {error['msg']}") from exc
        return cls(
            key=parsed.key or "",
            secret=parsed.secret or "",
            bucket=parsed.bucket or "",
            region=parsed.region or None,
            enable_v4=parsed.enable_v4,
            endpoint=parsed.endpoint or None,
        )

    @classmethod
    def from_env(cls, prefix: str = "STORAGE_") -> StorageConfig:
        # Empty strings count as unset, same as a missing variable.
        def env(name: str) -> str | None:
            return os.getenv(prefix + name) or None

        return cls(
            key=env("KEY") or "",
            secret=env("SECRET") or "",
            bucket=env("BUCKET") or "",
            region=env("REGION"),
            enable_v4=parse_bool(env("ENABLE_V4")),
            endpoint=env("ENDPOINT"),
        )
