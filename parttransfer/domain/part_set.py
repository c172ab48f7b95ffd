from __future__ import annotations

import threading
from typing import Iterable, Iterator

from parttransfer.infra.storage.client import PartResult


def finalize_parts(results: Iterable[PartResult]) -> list[PartResult]:
    """Order part results by part number for session completion.

    ``sorted`` is stable, so results sharing a part number keep the order in
    which they were produced. Nothing is deduplicated or dropped.
    """

    return sorted(results, key=lambda part: part.part_number)


class PartSet:
    """Results collected for one session, safe to append from worker threads."""

    def __init__(self) -> None:
        self._results: list[PartResult] = []
        self._lock = threading.Lock()

    def add(self, result: PartResult) -> None:
        with self._lock:
            self._results.append(result)

    def finalize(self) -> list[PartResult]:
        with self._lock:
            return finalize_parts(self._results)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def __iter__(self) -> Iterator[PartResult]:
        with self._lock:
            return iter(list(self._results))
