"""Async reading of JSON Lines sources: raw lines, parsed values, head, tail and count."""

from __future__ import annotations

import os
from typing import Any, Callable, Optional, Union

from .take_n import (
    JsonlError,
    TakeNLines,
    TakeNLinesReverse,
    _ParsedLines,
    _read_line,
)


class Jsonl:
    """Async iterator over the non-empty, stripped lines of a JSON Lines stream.

    ``stream`` is a binary or text stream with ``readline()``; ``last_n`` also
    needs ``seek(offset, whence)`` and ``read(size)`` on a binary stream. Its
    methods may be plain functions or coroutines.
    """

    def __init__(self, stream: Any) -> None:
        self._stream = stream

    @classmethod
    async def from_path(cls, path: Union[str, "os.PathLike[str]"]) -> "Jsonl":
        """Open the file at ``path`` for reading."""
        try:
            handle = open(path, "rb")
        except OSError as exc:
            raise JsonlError(f"Failed to open file: {exc}") from exc
        return cls(handle)

    async def __aenter__(self) -> "Jsonl":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        close = getattr(self._stream, "close", None)
        if close is not None:
            result = close()
            if hasattr(result, "__await__"):
                await result

    def __aiter__(self) -> "Jsonl":
        return self

    async def __anext__(self) -> str:
        line = await _read_line(self._stream)
        if line is None:
            raise StopAsyncIteration
        return line

    async def first_n(self, n: int) -> TakeNLines:
        """Return a stream of the first ``n`` non-empty lines."""
        return TakeNLines(self._stream, n)

    async def last_n(self, n: int) -> TakeNLinesReverse:
        """Return a stream of the last ``n`` non-empty lines, the last line first."""
        return await TakeNLinesReverse.from_reader(self._stream, n)

    async def count(self) -> int:
        """Count the remaining non-empty lines, consuming the stream."""
        total = 0
        async for _ in self:
            total += 1
        return total

    def deserialize(self, into: Optional[Callable[[Any], Any]] = None) -> _ParsedLines:
        """Iterate over the lines decoded as JSON and converted with ``into``.

        A line that fails raises :class:`JsonlError`; iteration may go on with
        the following lines.
        """
        return _ParsedLines(self, into)

    def deserialize_values(self) -> _ParsedLines:
        """Iterate over the lines decoded as plain JSON values."""
        return self.deserialize()