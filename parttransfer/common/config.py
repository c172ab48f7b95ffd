from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB

# The service rejects non-final parts smaller than this.
DEFAULT_PART_SIZE_MIN_BYTES = 100 * KIB
DEFAULT_PART_SIZE_MAX_BYTES = 5 * GIB


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_mapping(value: str | None) -> dict[str, str]:
    """Parse ``key=value,key2=value2`` into a dict, skipping malformed items."""
    if not value:
        return {}
    mapping: dict[str, str] = {}
    for item in value.split(","):
        if "=" not in item:
            continue
        key, raw = item.split("=", 1)
        key = key.strip()
        if key:
            mapping[key] = raw.strip()
    return mapping


@dataclass
class Settings:
    S3_ENDPOINT_URL: str | None = None
    S3_REGION: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_USE_SSL: bool = True
    S3_ADDRESSING_STYLE: str = "path"
    S3_BUCKET: str | None = None
    PART_SIZE_MIN_BYTES: int = DEFAULT_PART_SIZE_MIN_BYTES
    PART_SIZE_MAX_BYTES: int = DEFAULT_PART_SIZE_MAX_BYTES
    DEFAULT_PART_SIZE_BYTES: int = 8 * MIB
    DEFAULT_CONTENT_TYPE: str = "application/octet-stream"
    REQUEST_METADATA: dict[str, str] = field(default_factory=dict)
    IO_BUFFER_SIZE: int = 64 * KIB
    TRANSFER_WORKERS: int = 1
    LOG_JSON: bool = True

    def __post_init__(self) -> None:
        if self.PART_SIZE_MIN_BYTES < 1:
            raise ValueError("PART_SIZE_MIN_BYTES must be at least 1.")
        if self.PART_SIZE_MAX_BYTES < self.PART_SIZE_MIN_BYTES:
            raise ValueError(
                "PART_SIZE_MAX_BYTES must not be smaller than PART_SIZE_MIN_BYTES."
            )
        if self.IO_BUFFER_SIZE < 1:
            raise ValueError("IO_BUFFER_SIZE must be positive.")
        if self.TRANSFER_WORKERS < 1:
            raise ValueError("TRANSFER_WORKERS must be at least 1.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL"),
            S3_REGION=os.environ.get("S3_REGION"),
            S3_ACCESS_KEY_ID=os.environ.get("S3_ACCESS_KEY_ID"),
            S3_SECRET_ACCESS_KEY=os.environ.get("S3_SECRET_ACCESS_KEY"),
            S3_USE_SSL=_as_bool(os.environ.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            S3_BUCKET=os.environ.get("S3_BUCKET"),
            PART_SIZE_MIN_BYTES=int(
                os.environ.get("PART_SIZE_MIN_BYTES", cls.PART_SIZE_MIN_BYTES)
            ),
            PART_SIZE_MAX_BYTES=int(
                os.environ.get("PART_SIZE_MAX_BYTES", cls.PART_SIZE_MAX_BYTES)
            ),
            DEFAULT_PART_SIZE_BYTES=int(
                os.environ.get("DEFAULT_PART_SIZE_BYTES", cls.DEFAULT_PART_SIZE_BYTES)
            ),
            DEFAULT_CONTENT_TYPE=os.environ.get(
                "DEFAULT_CONTENT_TYPE", cls.DEFAULT_CONTENT_TYPE
            ),
            REQUEST_METADATA=_as_mapping(os.environ.get("REQUEST_METADATA")),
            IO_BUFFER_SIZE=int(os.environ.get("IO_BUFFER_SIZE", cls.IO_BUFFER_SIZE)),
            TRANSFER_WORKERS=int(
                os.environ.get("TRANSFER_WORKERS", cls.TRANSFER_WORKERS)
            ),
            LOG_JSON=_as_bool(os.environ.get("LOG_JSON"), cls.LOG_JSON),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
