"""Buffered reading of text lines from the end of a seekable stream backwards."""

from __future__ import annotations

import inspect
import io
from typing import Any, Optional

DEFAULT_BUF_SIZE = 8 * 1024
"""Default buffer size: 8 KiB."""


async def _resolve(value: Any) -> Any:
    """Await ``value`` if the stream handed back an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\r")


class RevBufReader:
    """Reads lines of a seekable binary stream from the last one to the first.

    ``inner`` needs ``seek(offset, whence)`` and ``read(size)``; both may be
    plain methods or coroutines. Empty lines are skipped, and both ``\\n`` and
    ``\\r`` separate lines.
    """

    def __init__(self, inner: Any, capacity: int = DEFAULT_BUF_SIZE) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self.inner = inner
        self._buf = bytearray(capacity)
        self._pos = 0
        self._cap = 0
        self._file_pos = 0
        self._file_size = 0
        self._initialized = False

    def buffer(self) -> bytes:
        """Return the internally buffered data."""
        return bytes(self._buf[self._pos:self._cap])

    def into_inner(self) -> Any:
        """Return the underlying stream."""
        return self.inner

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            self._file_size = await _resolve(self.inner.seek(0, io.SEEK_END))
            self._file_pos = self._file_size
            self._initialized = True

    async def _seek_back(self, length: int) -> int:
        if self._file_pos == 0:
            return 0
        amount = min(length, self._file_pos)
        new_pos = self._file_pos - amount
        await _resolve(self.inner.seek(new_pos, io.SEEK_SET))
        self._file_pos = new_pos
        self._cap = 0
        self._pos = 0
        return amount

    async def _fill_buffer(self) -> int:
        """Refill the buffer if it is used up; return the count of unread bytes."""
        if self._pos == 0:
            length = await self._seek_back(len(self._buf))
            if length == 0:
                return 0
            total = 0
            while total < length:
                chunk = await _resolve(self.inner.read(length - total))
                if not chunk:
                    break
                chunk = chunk[: length - total]
                self._buf[total:total + len(chunk)] = chunk
                total += len(chunk)
            self._cap = total
            self._pos = total
        return self._pos

    async def next_line(self) -> Optional[str]:
        """Return the next line going backwards, or None at the start of the stream."""
        await self._ensure_initialized()
        if self._file_size == 0:
            return None

        pending = b""
        while True:
            end = await self._fill_buffer()
            if end == 0:
                return None
            newline = max(
                self._buf.rfind(b"\n", 0, end), self._buf.rfind(b"\r", 0, end)
            )
            if newline >= 0:
                pending = bytes(self._buf[newline + 1:end]) + pending
                self._pos = newline
                line = _decode(pending)
                if line:
                    return line
                pending = b""
            else:
                pending = bytes(self._buf[:end]) + pending
                self._pos = 0
                if self._file_pos == 0:
                    if pending:
                        return _decode(pending) or None
                    return None

    def lines(self) -> "Lines":
        """Return an async iterator over the lines in reverse order."""
        return Lines(self)


class Lines:
    """Async iterator over the lines of a :class:`RevBufReader`, last first."""

    def __init__(self, reader: RevBufReader) -> None:
        self.reader = reader

    async def next_line(self) -> Optional[str]:
        """Return the next line in reverse order, or None when done."""
        return await self.reader.next_line()

    def into_inner(self) -> RevBufReader:
        """Return the underlying reader."""
        return self.reader

    def __aiter__(self) -> "Lines":
        return self

    async def __anext__(self) -> str:
        line = await self.reader.next_line()
        if line is None:
            raise StopAsyncIteration
        return line