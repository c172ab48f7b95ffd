"""Upload a local file to object storage as a multipart session."""

from __future__ import annotations

import logging
import os

from parttransfer.common.errors import SourceNotFoundError
from parttransfer.domain.planning import PartDescriptor, plan_parts
from parttransfer.infra.storage.client import (
    CompletedObject,
    PartResult,
    SessionHandle,
    UploadOptions,
)
from parttransfer.infra.storage.section import FileSection

from .base import BaseTransferService

logger = logging.getLogger("parttransfer.upload")


class UploadService(BaseTransferService):
    """Splits a local file into parts and uploads them through one session."""

    def upload_file(
        self,
        path: str | os.PathLike[str],
        object_key: str,
        *,
        part_size: int | None = None,
        options: UploadOptions | None = None,
    ) -> CompletedObject:
        """Upload ``path`` to ``object_key``.

        Args:
            path: Local file to upload.
            object_key: Destination object key.
            part_size: Bytes per part; defaults to DEFAULT_PART_SIZE_BYTES.
            options: Object attributes applied when the session is opened.

        Returns:
            CompletedObject describing the assembled object.

        Raises:
            InvalidConfigurationError: If the part size is out of bounds or
                the file needs too many parts. No session is opened.
            SourceNotFoundError: If ``path`` does not exist or cannot be
                opened for reading. No session is opened.
            TransferError: If opening the session or any part upload fails.
                The session is aborted first.
            FinalizationError: If completing the session fails. The session
                is aborted first.
        """
        part_size = self._resolve_part_size(part_size)
        try:
            with open(path, "rb") as fd:
                source_size = os.fstat(fd.fileno()).st_size
        except FileNotFoundError as exc:
            raise SourceNotFoundError(f"File not found: {path}") from exc
        except OSError as exc:
            raise SourceNotFoundError(f"Cannot read file {path}: {exc}") from exc

        descriptors = plan_parts(
            source_size,
            part_size,
            min_size=self._settings.PART_SIZE_MIN_BYTES,
            max_size=self._settings.PART_SIZE_MAX_BYTES,
        )
        logger.info(
            "upload_planned path=%s object_key=%s size=%d part_size=%d parts=%d",
            path,
            object_key,
            source_size,
            part_size,
            len(descriptors),
        )

        def transfer(handle: SessionHandle, descriptor: PartDescriptor) -> PartResult:
            # Each part gets its own handle so parts can run on worker threads.
            with open(path, "rb") as fd:
                body = FileSection(fd, descriptor.offset, descriptor.size)
                return self._client.upload_part(
                    handle,
                    part_number=descriptor.part_number,
                    body=body,
                    size=descriptor.size,
                )

        return self._run_session(
            object_key,
            descriptors,
            transfer,
            options=self._resolve_options(object_key, options),
            direction="upload",
        )
