from __future__ import annotations

import io
import logging

from parttransfer.domain.planning import PartDescriptor, plan_parts
from parttransfer.infra.storage.client import (
    CompletedObject,
    CopyConditions,
    PartResult,
    SessionHandle,
    UploadOptions,
)

from .base import BaseTransferService

logger = logging.getLogger("parttransfer.copy")


class CopyService(BaseTransferService):
    """Server-side multipart copy assembled from byte ranges of a source object."""

    def copy_object(
        self,
        source_key: str,
        target_key: str,
        *,
        part_size: int | None = None,
        options: UploadOptions | None = None,
        conditions: CopyConditions | None = None,
    ) -> CompletedObject:
        """Copy ``source_key`` to ``target_key`` one range per part.

        The target inherits the source content type unless ``options`` sets
        one. ``conditions`` are checked by the service for every part.
        """
        part_size = self._resolve_part_size(part_size)
        source = self._probe(source_key)
        descriptors = plan_parts(
            source.size_bytes,
            part_size,
            min_size=self._settings.PART_SIZE_MIN_BYTES,
            max_size=self._settings.PART_SIZE_MAX_BYTES,
        )
        if options is None:
            options = UploadOptions(content_type=source.content_type)
        logger.info(
            "copy_planned source_key=%s target_key=%s size=%d parts=%d",
            source_key,
            target_key,
            source.size_bytes,
            len(descriptors),
        )

        def transfer(handle: SessionHandle, descriptor: PartDescriptor) -> PartResult:
            if descriptor.size == 0:
                # An empty range cannot be expressed as a copy source range.
                return self._client.upload_part(
                    handle,
                    part_number=descriptor.part_number,
                    body=io.BytesIO(b""),
                    size=0,
                )
            return self._client.copy_part(
                handle,
                part_number=descriptor.part_number,
                source_key=source_key,
                source_range=descriptor.as_range(),
                conditions=conditions,
            )

        return self._run_session(
            target_key,
            descriptors,
            transfer,
            options=self._resolve_options(target_key, options),
            direction="copy",
        )
