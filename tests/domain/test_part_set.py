"""Tests for part set ordering."""

from __future__ import annotations

import itertools
import threading

from parttransfer.domain.part_set import PartSet, finalize_parts
from parttransfer.infra.storage.client import PartResult


def _parts(*numbers: int) -> list[PartResult]:
    return [PartResult(part_number=n, etag=f"etag{n}") for n in numbers]


class TestFinalizeParts:
    def test_sorted_input_is_unchanged(self):
        parts = _parts(1, 2, 3)

        assert finalize_parts(parts) == parts

    def test_is_idempotent(self):
        once = finalize_parts(_parts(3, 1, 2))

        assert finalize_parts(once) == once

    def test_every_permutation_gives_same_order(self):
        expected = _parts(1, 2, 3, 4)
        for permutation in itertools.permutations(expected):
            assert finalize_parts(permutation) == expected

    def test_keeps_gaps(self):
        assert [p.part_number for p in finalize_parts(_parts(7, 2, 4))] == [2, 4, 7]

    def test_duplicates_keep_submission_order(self):
        first = PartResult(part_number=2, etag="first")
        second = PartResult(part_number=2, etag="second")

        result = finalize_parts([second, PartResult(1, "a"), first])

        assert [p.etag for p in result] == ["a", "second", "first"]

    def test_does_not_mutate_input(self):
        parts = _parts(2, 1)

        finalize_parts(parts)

        assert [p.part_number for p in parts] == [2, 1]

    def test_empty(self):
        assert finalize_parts([]) == []


class TestPartSet:
    def test_collects_and_finalizes(self):
        part_set = PartSet()
        for part in _parts(3, 1, 2):
            part_set.add(part)

        assert len(part_set) == 3
        assert [p.part_number for p in part_set] == [3, 1, 2]
        assert [p.part_number for p in part_set.finalize()] == [1, 2, 3]

    def test_concurrent_adds_are_not_lost(self):
        part_set = PartSet()

        def add_range(start: int) -> None:
            for n in range(start, start + 100):
                part_set.add(PartResult(part_number=n, etag=str(n)))

        threads = [threading.Thread(target=add_range, args=(i * 100 + 1,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert [p.part_number for p in part_set.finalize()] == list(range(1, 801))
