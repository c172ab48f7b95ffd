"""Tests for part and range planning."""

from __future__ import annotations

import pytest

from parttransfer.common.config import GIB, KIB
from parttransfer.common.errors import InvalidConfigurationError
from parttransfer.domain.planning import (
    MAX_PART_COUNT,
    PartDescriptor,
    plan_parts,
    plan_ranges,
    validate_chunk_size,
    validate_part_size,
)
from parttransfer.infra.storage.client import ByteRange


class TestPlanParts:
    def test_splits_with_short_last_part(self):
        parts = plan_parts(250, 100, min_size=1)

        assert parts == [
            PartDescriptor(part_number=1, offset=0, size=100),
            PartDescriptor(part_number=2, offset=100, size=100),
            PartDescriptor(part_number=3, offset=200, size=50),
        ]

    def test_exact_multiple_has_full_last_part(self):
        parts = plan_parts(300, 100, min_size=1)

        assert [p.size for p in parts] == [100, 100, 100]

    def test_source_smaller_than_part(self):
        parts = plan_parts(7, 100, min_size=1)

        assert parts == [PartDescriptor(part_number=1, offset=0, size=7)]

    @pytest.mark.parametrize(
        "source_size,part_size",
        [(1, 1), (1, 3), (99, 10), (100, 10), (101, 10), (1000, 333), (4097, 512)],
    )
    def test_parts_tile_source(self, source_size, part_size):
        parts = plan_parts(source_size, part_size, min_size=1)

        assert [p.part_number for p in parts] == list(range(1, len(parts) + 1))
        cursor = 0
        for part in parts:
            assert part.offset == cursor
            assert 0 < part.size <= part_size
            cursor += part.size
        assert cursor == source_size
        assert all(p.size == part_size for p in parts[:-1])

    def test_empty_source_yields_single_empty_part(self):
        assert plan_parts(0, 100, min_size=1) == [
            PartDescriptor(part_number=1, offset=0, size=0)
        ]

    def test_rejects_negative_source(self):
        with pytest.raises(InvalidConfigurationError, match="negative"):
            plan_parts(-1, 100, min_size=1)

    def test_rejects_too_many_parts(self):
        with pytest.raises(InvalidConfigurationError, match="maximum"):
            plan_parts(MAX_PART_COUNT + 1, 1, min_size=1)

    def test_accepts_exactly_max_parts(self):
        parts = plan_parts(MAX_PART_COUNT, 1, min_size=1)

        assert len(parts) == MAX_PART_COUNT
        assert parts[-1].part_number == MAX_PART_COUNT

    def test_default_bounds_reject_small_part(self):
        with pytest.raises(InvalidConfigurationError):
            plan_parts(10 * 1024 * KIB, 100 * KIB - 1)

    def test_descriptor_as_range(self):
        descriptor = PartDescriptor(part_number=2, offset=100, size=100)

        assert descriptor.as_range() == ByteRange(start=100, end=199)


class TestValidatePartSize:
    def test_default_bounds_are_inclusive(self):
        assert validate_part_size(100 * KIB) == 100 * KIB
        assert validate_part_size(5 * GIB) == 5 * GIB

    @pytest.mark.parametrize("part_size", [0, -1, 100 * KIB - 1, 5 * GIB + 1])
    def test_rejects_out_of_bounds(self, part_size):
        with pytest.raises(InvalidConfigurationError, match="part size"):
            validate_part_size(part_size)

    def test_custom_bounds(self):
        assert validate_part_size(5, min_size=5, max_size=5) == 5
        with pytest.raises(InvalidConfigurationError):
            validate_part_size(6, min_size=5, max_size=5)


class TestPlanRanges:
    def test_ranges_are_inclusive(self):
        assert plan_ranges(250, 100) == [
            ByteRange(start=0, end=99),
            ByteRange(start=100, end=199),
            ByteRange(start=200, end=249),
        ]

    def test_empty_object_has_no_ranges(self):
        assert plan_ranges(0, 100) == []

    def test_single_byte_chunks(self):
        ranges = plan_ranges(3, 1)

        assert [(r.start, r.end) for r in ranges] == [(0, 0), (1, 1), (2, 2)]
        assert sum(r.size for r in ranges) == 3

    @pytest.mark.parametrize("chunk_size", [0, -5])
    def test_rejects_non_positive_chunk(self, chunk_size):
        with pytest.raises(InvalidConfigurationError, match="chunk size"):
            plan_ranges(100, chunk_size)

    def test_rejects_chunk_above_max(self):
        with pytest.raises(InvalidConfigurationError):
            validate_chunk_size(5 * GIB + 1)

    def test_range_header(self):
        assert ByteRange(start=100, end=199).as_header() == "bytes=100-199"
