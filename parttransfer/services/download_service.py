"""Download an object into a local file with sequential ranged reads.

Downloads are not transactional: if a range fails, the bytes already written
stay in the destination file and the caller has to restart from the start.
"""

from __future__ import annotations

import logging
import os
from contextlib import closing
from typing import BinaryIO

from parttransfer.common.errors import TransferError
from parttransfer.domain.planning import plan_ranges, validate_chunk_size
from parttransfer.infra.observability.metrics import BYTES, PARTS
from parttransfer.infra.storage.client import ByteRange, ReadOptions

from .base import BaseTransferService

logger = logging.getLogger("parttransfer.download")


class DownloadService(BaseTransferService):
    """Streams an object into a local file one byte range at a time."""

    def download_file(
        self,
        object_key: str,
        path: str | os.PathLike[str],
        *,
        chunk_size: int | None = None,
        options: ReadOptions | None = None,
    ) -> int:
        """Download ``object_key`` into ``path``, truncating it first.

        Returns:
            Number of bytes written.

        Raises:
            InvalidConfigurationError: If the chunk size is out of bounds.
            SourceNotFoundError: If the object does not exist.
            TransferError: If the metadata probe, a ranged read or a local
                write fails. No further ranges are requested.
        """
        if chunk_size is None:
            chunk_size = self._settings.DEFAULT_PART_SIZE_BYTES
        validate_chunk_size(chunk_size, max_size=self._settings.PART_SIZE_MAX_BYTES)

        metadata = self._probe(object_key)
        ranges = plan_ranges(
            metadata.size_bytes,
            chunk_size,
            max_size=self._settings.PART_SIZE_MAX_BYTES,
        )
        logger.info(
            "download_planned object_key=%s size=%d chunk_size=%d ranges=%d",
            object_key,
            metadata.size_bytes,
            chunk_size,
            len(ranges),
        )

        try:
            sink = open(path, "wb")
        except OSError as exc:
            raise TransferError(f"Failed to open {path} for writing: {exc}") from exc

        written = 0
        with sink:
            for byte_range in ranges:
                written += self._fetch_range(object_key, byte_range, sink, options)

        logger.info(
            "download_completed object_key=%s path=%s bytes=%d",
            object_key,
            path,
            written,
            extra={
                "extra": {
                    "object_key": object_key,
                    "path": str(path),
                    "bytes": written,
                }
            },
        )
        return written

    def _fetch_range(
        self,
        object_key: str,
        byte_range: ByteRange,
        sink: BinaryIO,
        options: ReadOptions | None,
    ) -> int:
        buffer_size = self._settings.IO_BUFFER_SIZE
        try:
            stream = self._client.ranged_read(object_key, byte_range, options)
            copied = 0
            with closing(stream):
                while True:
                    chunk = stream.read(buffer_size)
                    if not chunk:
                        break
                    sink.write(chunk)
                    copied += len(chunk)
        except Exception as exc:
            PARTS.labels("download", "error").inc()
            raise TransferError(
                f"Failed to download {byte_range.as_header()} of {object_key}: {exc}"
            ) from exc

        if copied != byte_range.size:
            PARTS.labels("download", "error").inc()
            raise TransferError(
                f"Short read for {byte_range.as_header()} of {object_key}: "
                f"expected {byte_range.size} bytes, got {copied}"
            )
        PARTS.labels("download", "ok").inc()
        BYTES.labels("download").inc(copied)
        return copied
