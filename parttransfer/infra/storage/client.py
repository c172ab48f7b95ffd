"""Session client protocol and data types.

This module defines the interface the transfer services use to talk to an
object storage backend: multipart session lifecycle, part transfer (direct
upload or server-side range copy), metadata probes and ranged reads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO, Protocol, Sequence


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class ObjectNotFoundError(StorageError):
    """Raised when the requested object does not exist."""


@dataclass(frozen=True, slots=True)
class SessionHandle:
    """An open multipart session on the remote service."""

    upload_id: str
    object_key: str


@dataclass(frozen=True, slots=True)
class PartResult:
    """A part accepted by the remote service, identified by its ETag."""

    part_number: int
    etag: str


@dataclass(frozen=True, slots=True)
class ByteRange:
    """Inclusive byte interval of a remote object."""

    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    def as_header(self) -> str:
        return f"bytes={self.start}-{self.end}"


@dataclass(frozen=True, slots=True)
class ObjectMetadata:
    """Metadata from a HEAD object request."""

    size_bytes: int
    etag: str | None
    content_type: str | None
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CompletedObject:
    """Final object assembled from a completed session."""

    object_key: str
    etag: str | None
    location: str | None = None


@dataclass(frozen=True, slots=True)
class PendingUpload:
    """A session that was opened but neither completed nor aborted."""

    upload_id: str
    object_key: str
    initiated: datetime | None = None


@dataclass(frozen=True, slots=True)
class UploadOptions:
    """Object attributes applied when a session is opened."""

    content_type: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    cache_control: str | None = None
    content_disposition: str | None = None
    content_encoding: str | None = None
    expires: datetime | None = None
    server_side_encryption: str | None = None


@dataclass(frozen=True, slots=True)
class ReadOptions:
    """Conditions a ranged read must satisfy."""

    if_match: str | None = None
    if_none_match: str | None = None
    if_modified_since: datetime | None = None
    if_unmodified_since: datetime | None = None


@dataclass(frozen=True, slots=True)
class CopyConditions:
    """Conditions on the copy source; the part copy fails when unmet."""

    if_match: str | None = None
    if_none_match: str | None = None
    if_modified_since: datetime | None = None
    if_unmodified_since: datetime | None = None


class SessionClient(Protocol):
    """Protocol defining the interface for multipart transfer backends.

    Implementations must provide all methods defined here and raise
    StorageError (or ObjectNotFoundError) on failure.
    """

    def open_session(
        self,
        object_key: str,
        options: UploadOptions | None = None,
    ) -> SessionHandle:
        """Initialize a multipart upload session.

        Args:
            object_key: Object key (path) of the object being assembled.
            options: Content type, metadata and other object attributes.

        Returns:
            SessionHandle for subsequent part operations.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def upload_part(
        self,
        handle: SessionHandle,
        *,
        part_number: int,
        body: BinaryIO,
        size: int,
    ) -> PartResult:
        """Upload ``size`` bytes read from ``body`` as one part.

        Args:
            handle: Open session.
            part_number: Part number (1-based, max 10000). Reusing a number
                overwrites the part stored remotely.
            body: Readable stream positioned at the start of the part.
            size: Exact number of bytes to send.

        Returns:
            PartResult carrying the ETag assigned by the service.

        Raises:
            StorageError: If the upload fails.
        """
        ...

    def copy_part(
        self,
        handle: SessionHandle,
        *,
        part_number: int,
        source_key: str,
        source_range: ByteRange,
        conditions: CopyConditions | None = None,
    ) -> PartResult:
        """Copy a byte range of an existing object into the session.

        Raises:
            StorageError: If the copy fails or a condition is not met.
        """
        ...

    def complete_session(
        self,
        handle: SessionHandle,
        parts: Sequence[PartResult],
    ) -> CompletedObject:
        """Assemble the object from the given parts, in the given order.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def abort_session(self, handle: SessionHandle) -> None:
        """Abort a session and discard its uploaded parts.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def list_parts(self, handle: SessionHandle) -> list[PartResult]:
        """List the parts stored so far for a session, by part number."""
        ...

    def list_pending_uploads(self, prefix: str | None = None) -> list[PendingUpload]:
        """List sessions that are neither completed nor aborted."""
        ...

    def get_metadata(self, object_key: str) -> ObjectMetadata:
        """Get object metadata without downloading the content.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StorageError: If the operation fails otherwise.
        """
        ...

    def ranged_read(
        self,
        object_key: str,
        byte_range: ByteRange,
        options: ReadOptions | None = None,
    ) -> BinaryIO:
        """Open a stream over ``byte_range`` of an object.

        The caller owns the returned stream and must close it.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StorageError: If the request fails.
        """
        ...
