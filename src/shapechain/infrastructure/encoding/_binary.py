from __future__ import annotations

from typing import Tuple

import numpy as np

from ...domain._errors import DeserializationError
from .._config import REAL_DTYPE, WIRE_DTYPE

_INT_DTYPE = np.dtype("<i8")


class BinaryWriter:
    """
    Append-only writer for the layer binary encoding.

    Layers write their parameters as flat runs of little-endian floats in
    row-major order. No length prefixes or type tags are written; the reader
    must already know what to expect at each position.
    """

    def __init__(self) -> None:
        self._chunks: list[bytes] = []

    def write_array(self, arr: np.ndarray) -> None:
        """Write every element of `arr` in row-major order."""
        a = np.asarray(arr, dtype=REAL_DTYPE)
        self._chunks.append(a.astype(WIRE_DTYPE, copy=False).tobytes(order="C"))

    def write_float(self, value: float) -> None:
        self.write_array(np.asarray([value], dtype=REAL_DTYPE))

    def write_int(self, value: int) -> None:
        self._chunks.append(np.asarray([value], dtype=_INT_DTYPE).tobytes())

    def getvalue(self) -> bytes:
        return b"".join(self._chunks)


class BinaryReader:
    """
    Sequential reader for the layer binary encoding.

    Raises `DeserializationError` when asked for more data than remains.
    """

    def __init__(self, data: bytes) -> None:
        self._buf = memoryview(bytes(data))
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._buf) - self._pos

    def _take(self, nbytes: int) -> memoryview:
        if nbytes > self.remaining:
            raise DeserializationError(
                f"Unexpected end of data: needed {nbytes} bytes at offset "
                f"{self._pos}, only {self.remaining} remain."
            )
        chunk = self._buf[self._pos : self._pos + nbytes]
        self._pos += nbytes
        return chunk

    def read_array(self, dims: Tuple[int, ...]) -> np.ndarray:
        """Read a row-major array of the given dimensions."""
        count = 1
        for d in dims:
            count *= int(d)
        chunk = self._take(count * WIRE_DTYPE.itemsize)
        arr = np.frombuffer(chunk, dtype=WIRE_DTYPE, count=count)
        # Make it a real owning array in native byte order
        return np.array(arr, dtype=REAL_DTYPE, copy=True).reshape(dims)

    def read_float(self) -> float:
        return float(self.read_array((1,))[0])

    def read_int(self) -> int:
        chunk = self._take(_INT_DTYPE.itemsize)
        return int(np.frombuffer(chunk, dtype=_INT_DTYPE, count=1)[0])

    def ensure_consumed(self) -> None:
        """Raise if any unread bytes remain."""
        if self.remaining:
            raise DeserializationError(
                f"{self.remaining} trailing bytes left after deserialization."
            )
