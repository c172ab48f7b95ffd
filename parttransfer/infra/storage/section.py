from __future__ import annotations

import io
import os
from typing import BinaryIO


class FileSection(io.RawIOBase):
    """Read-only, seekable view of ``size`` bytes of ``fileobj`` from ``offset``.

    Positions are relative to the section, so a part body can be rewound by
    the transport (for checksums or resends) without touching bytes outside
    the part.
    """

    def __init__(self, fileobj: BinaryIO, offset: int, size: int) -> None:
        super().__init__()
        self._file = fileobj
        self._offset = offset
        self._size = size
        self._pos = 0

    def __len__(self) -> int:
        return self._size

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._pos

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        if whence == os.SEEK_SET:
            target = offset
        elif whence == os.SEEK_CUR:
            target = self._pos + offset
        elif whence == os.SEEK_END:
            target = self._size + offset
        else:
            raise ValueError(f"invalid whence {whence}")
        self._pos = max(0, min(target, self._size))
        return self._pos

    def readinto(self, buffer) -> int:
        remaining = self._size - self._pos
        if remaining <= 0:
            return 0
        view = memoryview(buffer)[: min(len(buffer), remaining)]
        self._file.seek(self._offset + self._pos)
        count = self._file.readinto(view)
        if not count:
            return 0
        self._pos += count
        return count

    def read(self, size: int = -1) -> bytes:
        remaining = self._size - self._pos
        if size is None or size < 0 or size > remaining:
            size = remaining
        if size <= 0:
            return b""
        self._file.seek(self._offset + self._pos)
        data = self._file.read(size)
        self._pos += len(data)
        return data
