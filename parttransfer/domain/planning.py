"""Split objects into parts and ranges.

Both planners are pure functions: they validate their inputs and return the
full plan up front, so an invalid configuration is rejected before any
session is opened or any range is requested.
"""

from __future__ import annotations

from dataclasses import dataclass

from parttransfer.common.config import (
    DEFAULT_PART_SIZE_MAX_BYTES,
    DEFAULT_PART_SIZE_MIN_BYTES,
)
from parttransfer.common.errors import InvalidConfigurationError
from parttransfer.infra.storage.client import ByteRange

# Maximum part number accepted by the service
MAX_PART_COUNT = 10000


@dataclass(frozen=True, slots=True)
class PartDescriptor:
    """One contiguous slice of the source, uploaded as a single part."""

    part_number: int
    offset: int
    size: int

    def as_range(self) -> ByteRange:
        return ByteRange(start=self.offset, end=self.offset + self.size - 1)


def validate_part_size(
    part_size: int,
    *,
    min_size: int = DEFAULT_PART_SIZE_MIN_BYTES,
    max_size: int = DEFAULT_PART_SIZE_MAX_BYTES,
) -> int:
    if part_size < min_size or part_size > max_size:
        raise InvalidConfigurationError(
            f"part size {part_size} outside accepted range [{min_size}, {max_size}]"
        )
    return part_size


def validate_chunk_size(
    chunk_size: int, *, max_size: int = DEFAULT_PART_SIZE_MAX_BYTES
) -> int:
    if chunk_size < 1 or chunk_size > max_size:
        raise InvalidConfigurationError(
            f"chunk size {chunk_size} outside accepted range [1, {max_size}]"
        )
    return chunk_size


def plan_parts(
    source_size: int,
    part_size: int,
    *,
    min_size: int = DEFAULT_PART_SIZE_MIN_BYTES,
    max_size: int = DEFAULT_PART_SIZE_MAX_BYTES,
) -> list[PartDescriptor]:
    """Split ``source_size`` bytes into parts of ``part_size`` bytes.

    Every part but the last has exactly ``part_size`` bytes. An empty source
    produces a single empty part, which the service accepts as the final part.

    Raises:
        InvalidConfigurationError: If the part size is out of bounds, the
            source size is negative, or the plan needs more than
            MAX_PART_COUNT parts.
    """

    validate_part_size(part_size, min_size=min_size, max_size=max_size)
    if source_size < 0:
        raise InvalidConfigurationError(f"source size {source_size} is negative")
    if source_size == 0:
        return [PartDescriptor(part_number=1, offset=0, size=0)]

    part_count = -(-source_size // part_size)
    if part_count > MAX_PART_COUNT:
        raise InvalidConfigurationError(
            f"{source_size} bytes at part size {part_size} needs {part_count} parts, "
            f"more than the maximum of {MAX_PART_COUNT}"
        )

    return [
        PartDescriptor(
            part_number=index + 1,
            offset=offset,
            size=min(part_size, source_size - offset),
        )
        for index, offset in enumerate(range(0, source_size, part_size))
    ]


def plan_ranges(
    total_size: int,
    chunk_size: int,
    *,
    max_size: int = DEFAULT_PART_SIZE_MAX_BYTES,
) -> list[ByteRange]:
    """Inclusive byte ranges covering ``[0, total_size)`` in ``chunk_size`` steps."""

    validate_chunk_size(chunk_size, max_size=max_size)
    return [
        ByteRange(start=start, end=min(start + chunk_size, total_size) - 1)
        for start in range(0, total_size, chunk_size)
    ]
