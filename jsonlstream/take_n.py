"""Streams of the first or last ``n`` non-empty lines of a JSON Lines source."""

from __future__ import annotations

import inspect
import io
import json
from collections import deque
from typing import Any, Callable, Iterable, List, Optional

_CHUNK_SIZE = 8192


class JsonlError(Exception):
    """Raised when a JSON Lines source cannot be read or a line cannot be parsed."""


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def parse_line(line: str, into: Optional[Callable[[Any], Any]] = None) -> Any:
    """Decode one JSON line, then pass the value to ``into`` if it is given.

    Decoding errors and ``TypeError``, ``ValueError`` or ``KeyError`` raised by
    ``into`` become :class:`JsonlError`.
    """
    try:
        value = json.loads(line)
        return value if into is None else into(value)
    except (ValueError, TypeError, KeyError) as exc:
        raise JsonlError(f"Failed to parse JSON line: {exc}") from exc


async def _read_line(reader: Any) -> Optional[str]:
    """Return the next non-empty, stripped line of ``reader``, or None at the end."""
    while True:
        try:
            raw = await _resolve(reader.readline())
        except OSError as exc:
            raise JsonlError(f"IO error: {exc}") from exc
        if not raw:
            return None
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = bytes(raw).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise JsonlError(f"IO error: {exc}") from exc
        line = raw.strip()
        if line:
            return line


class _ParsedLines:
    """Async iterator applying :func:`parse_line` to each line of another one.

    A line that fails to parse raises :class:`JsonlError`; iteration may then
    carry on with the following lines.
    """

    def __init__(self, source: Any, into: Optional[Callable[[Any], Any]]) -> None:
        self._source = source
        self._into = into

    def __aiter__(self) -> "_ParsedLines":
        return self

    async def __anext__(self) -> Any:
        line = await self._source.__anext__()
        return parse_line(line, self._into)


class TakeNLines:
    """Yields at most ``n`` non-empty lines from the start of a stream.

    ``reader`` needs ``readline()``, returning ``bytes`` or ``str``; it may be
    a coroutine.
    """

    def __init__(self, reader: Any, n: int) -> None:
        self._reader = reader
        self._remaining = n

    def __aiter__(self) -> "TakeNLines":
        return self

    async def __anext__(self) -> str:
        if self._remaining <= 0:
            raise StopAsyncIteration
        line = await _read_line(self._reader)
        if line is None:
            raise StopAsyncIteration
        self._remaining -= 1
        return line

    def deserialize(self, into: Optional[Callable[[Any], Any]] = None) -> _ParsedLines:
        """Iterate over the lines decoded as JSON and converted with ``into``."""
        return _ParsedLines(self, into)

    def deserialize_values(self) -> _ParsedLines:
        """Iterate over the lines decoded as plain JSON values."""
        return self.deserialize()


def _split_lines(text: str) -> List[str]:
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


async def _read_exact(reader: Any, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = await _resolve(reader.read(size - len(data)))
        if not chunk:
            raise JsonlError("IO error: failed to fill whole buffer")
        data += chunk
    return bytes(data)


async def _tail_lines(reader: Any, n: int) -> List[str]:
    file_size = await _resolve(reader.seek(0, io.SEEK_END))
    if file_size == 0 or n <= 0:
        return []

    found: deque[str] = deque()
    buffer = b""
    current_pos = file_size

    while current_pos > 0 and len(found) < n:
        read_size = min(_CHUNK_SIZE, current_pos)
        new_pos = current_pos - read_size
        await _resolve(reader.seek(new_pos, io.SEEK_SET))
        buffer = await _read_exact(reader, read_size) + buffer
        current_pos = new_pos

        lines = _split_lines(buffer.decode("utf-8", errors="replace"))

        if current_pos > 0 and buffer and buffer[:1] != b"\n":
            if len(lines) <= 1:
                continue
            buffer = lines[0].encode("utf-8")
            complete = lines[1:]
        else:
            buffer = b""
            complete = lines

        for line in reversed(complete):
            trimmed = line.strip()
            if trimmed:
                found.appendleft(trimmed)
                if len(found) >= n:
                    break

    return list(found)[-n:][::-1]


class TakeNLinesReverse:
    """Yields the last ``n`` non-empty lines of a stream, the last line first."""

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = iter(list(lines))

    @classmethod
    async def from_reader(cls, reader: Any, n: int) -> "TakeNLinesReverse":
        """Read the last ``n`` lines of a seekable binary stream."""
        try:
            return cls(await _tail_lines(reader, n))
        except OSError as exc:
            raise JsonlError(f"IO error: {exc}") from exc

    def __aiter__(self) -> "TakeNLinesReverse":
        return self

    async def __anext__(self) -> str:
        try:
            return next(self._lines)
        except StopIteration:
            raise StopAsyncIteration from None

    def deserialize(self, into: Optional[Callable[[Any], Any]] = None) -> _ParsedLines:
        """Iterate over the lines decoded as JSON and converted with ``into``."""
        return _ParsedLines(self, into)

    def deserialize_values(self) -> _ParsedLines:
        """Iterate over the lines decoded as plain JSON values."""
        return self.deserialize()