"""MD5 message digest."""

from __future__ import annotations

import math
import os
import struct
from typing import Union

__all__ = ["MD5"]

_MASK = 0xFFFFFFFF
_BLOCK = 64
_READ_SIZE = 1024

_SHIFTS = (
    (7, 12, 17, 22) * 4
    + (5, 9, 14, 20) * 4
    + (4, 11, 16, 23) * 4
    + (6, 10, 15, 21) * 4
)
_CONSTANTS = tuple(int(abs(math.sin(i + 1)) * 2**32) & _MASK for i in range(64))
_INITIAL_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476)


def _rotate_left(value: int, count: int) -> int:
    value &= _MASK
    return ((value << count) | (value >> (32 - count))) & _MASK


def _transform(state: tuple[int, int, int, int], block: bytes) -> tuple[int, int, int, int]:
    words = struct.unpack("<16I", block)
    a, b, c, d = state
    for i in range(64):
        if i < 16:
            f = (b & c) | (~b & d)
            g = i
        elif i < 32:
            f = (b & d) | (c & ~d)
            g = (5 * i + 1) % 16
        elif i < 48:
            f = b ^ c ^ d
            g = (3 * i + 5) % 16
        else:
            f = c ^ (b | ~d)
            g = (7 * i) % 16
        f = (f + a + _CONSTANTS[i] + words[g]) & _MASK
        a, d, c = d, c, b
        b = (b + _rotate_left(f, _SHIFTS[i])) & _MASK
    return tuple((old + new) & _MASK for old, new in zip(state, (a, b, c, d)))


class MD5:
    """Incremental MD5 hasher with helpers for files, memory and strings."""

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self._state = _INITIAL_STATE
        self._pending = b""
        self._length = 0

    def update(self, data: Union[bytes, bytearray, memoryview]) -> None:
        """Feed more bytes into the digest."""
        data = bytes(data)
        self._length += len(data)
        buffer = self._pending + data
        full = len(buffer) - len(buffer) % _BLOCK
        state = self._state
        view = memoryview(buffer)
        for start in range(0, full, _BLOCK):
            state = _transform(state, view[start:start + _BLOCK].tobytes())
        self._state = state
        self._pending = buffer[full:]

    def _finalize(self) -> bytes:
        index = len(self._pending)
        pad_length = 56 - index if index < 56 else 120 - index
        tail = (
            self._pending
            + b"\x80"
            + b"\x00" * (pad_length - 1)
            + struct.pack("<Q", (self._length * 8) & 0xFFFFFFFFFFFFFFFF)
        )
        state = self._state
        for start in range(0, len(tail), _BLOCK):
            state = _transform(state, tail[start:start + _BLOCK])
        return struct.pack("<4I", *state)

    def hexdigest(self) -> str:
        """Return the digest of everything fed so far as 32 hex digits."""
        return self._finalize().hex()

    def digest_file(self, filename: Union[str, os.PathLike]) -> str:
        """Digest the contents of a file; raises OSError if it cannot be read."""
        self._reset()
        with open(filename, "rb") as stream:
            for chunk in iter(lambda: stream.read(_READ_SIZE), b""):
                self.update(chunk)
        return self.hexdigest()

    def digest_memory(self, data: Union[bytes, bytearray, memoryview]) -> str:
        """Digest a byte sequence already in memory."""
        self._reset()
        self.update(data)
        return self.hexdigest()

    def digest_string(self, string: str) -> str:
        """Digest the UTF-8 encoding of a string."""
        self._reset()
        self.update(string.encode("utf-8"))
        return self.hexdigest()