"""Bounds-checked reads and writes over a byte buffer."""

from __future__ import annotations

import struct
from typing import Any


class BufferView:
    """A view over a byte buffer with checked offset arithmetic.

    Every operation returns the offset just past the bytes it touched and
    raises IndexError when the range does not fit.
    """

    def __init__(self, buffer: bytes | bytearray | memoryview = b"") -> None:
        self._view = memoryview(buffer).cast("B")

    def __len__(self) -> int:
        return len(self._view)

    def valid(self, off: int, length: int) -> bool:
        """Return True if ``length`` bytes at ``off`` are inside the view."""
        size = len(self._view)
        return 0 <= off < size and 0 <= length < size - off

    def _check(self, off: int, length: int) -> None:
        if not self.valid(off, length):
            raise IndexError(f"range {off}+{length} outside buffer of {len(self)} bytes")

    def read(self, off: int, length: int) -> tuple[bytes, int]:
        """Return ``length`` bytes at ``off`` and the following offset."""
        self._check(off, length)
        return bytes(self._view[off:off + length]), off + length

    def write(self, off: int, data: bytes | bytearray | memoryview) -> int:
        """Copy ``data`` to ``off`` and return the following offset."""
        data = memoryview(data).cast("B")
        self._check(off, len(data))
        self._view[off:off + len(data)] = data
        return off + len(data)

    def read_struct(self, off: int, fmt: str) -> tuple[tuple[Any, ...], int]:
        """Unpack ``fmt`` at ``off``; return the values and the following offset."""
        size = struct.calcsize(fmt)
        self._check(off, size)
        return struct.unpack_from(fmt, self._view, off), off + size

    def write_struct(self, off: int, fmt: str, *args: Any) -> int:
        """Pack ``args`` with ``fmt`` at ``off`` and return the following offset."""
        size = struct.calcsize(fmt)
        self._check(off, size)
        struct.pack_into(fmt, self._view, off, *args)
        return off + size