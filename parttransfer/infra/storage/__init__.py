"""Object storage abstraction layer.

This module provides a protocol-based abstraction for multipart session
backends, with an S3-compatible implementation built on boto3.
"""

from .client import (
    ByteRange,
    CompletedObject,
    CopyConditions,
    ObjectMetadata,
    ObjectNotFoundError,
    PartResult,
    PendingUpload,
    ReadOptions,
    SessionClient,
    SessionHandle,
    StorageError,
    UploadOptions,
)

__all__ = [
    "ByteRange",
    "CompletedObject",
    "CopyConditions",
    "ObjectMetadata",
    "ObjectNotFoundError",
    "PartResult",
    "PendingUpload",
    "ReadOptions",
    "SessionClient",
    "SessionHandle",
    "StorageError",
    "UploadOptions",
]
