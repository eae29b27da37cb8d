# jsonlstream

Asynchronous reading of JSON Lines (JSONL) data, built on `asyncio` and the
standard library alone.

- Stream the lines of a file or an in-memory stream, with blank lines skipped
  and surrounding whitespace trimmed.
- Take the first `n` lines, or the last `n` lines (last line first, like `tail`).
- Parse each line into a JSON value, or pass it on to your own type.
- Count the non-blank lines.
- Read any seekable binary stream line by line from its end with `RevBufReader`.

The streams you hand in may have plain methods (`io.BytesIO`, files from
`open(..., "rb")`) or coroutine methods; both are accepted.

## Installation

```
pip install jsonlstream
```

## Reading lines

```python
import asyncio
import io

from jsonlstream.jsonl import Jsonl

DATA = b'''{"name": "Alice", "age": 30}
{"name": "Bob", "age": 25}

{"name": "Charlie", "age": 35}
'''

async def main():
    async for line in Jsonl(io.BytesIO(DATA)):
        print(line)

asyncio.run(main())
```

`Jsonl` takes a binary or text stream with `readline()`. Binary lines are
decoded as UTF-8.

`Jsonl.from_path(path)` is a coroutine that opens the file in binary mode.
`Jsonl` is also an async context manager that closes its stream on exit:

```python
async with await Jsonl.from_path("events.jsonl") as reader:
    async for line in reader:
        ...
```

## Parsing

`deserialize_values()` returns an async iterator of the parsed JSON value of
each line. `deserialize(into)` does the same and then calls `into` on each
value, for example a dataclass taking keyword arguments via a small lambda,
or a validating function.

A line that is not valid JSON, or for which `into` raises `TypeError`,
`ValueError` or `KeyError`, raises `jsonlstream.take_n.JsonlError` (its message
starts with `Failed to parse JSON line`). The iterator is not spoiled by the
error: calling `__anext__` again goes on with the next line.

```python
from jsonlstream.take_n import JsonlError

items = Jsonl(io.BytesIO(DATA)).deserialize_values()
while True:
    try:
        item = await items.__anext__()
    except StopAsyncIteration:
        break
    except JsonlError as exc:
        print("bad line:", exc)
        continue
    print(item["name"])
```

A single line can be parsed with `jsonlstream.take_n.parse_line(line, into=None)`.

Read errors from the stream are raised as `JsonlError` with a message starting
with `IO error`; a file that cannot be opened by `from_path` gives
`Failed to open file`.

## Head, tail and count

```python
first_two = await Jsonl(io.BytesIO(DATA)).first_n(2)
async for line in first_two:
    ...

last_two = await Jsonl(io.BytesIO(DATA)).last_n(2)   # last line first
records = [r async for r in last_two.deserialize_values()]

total = await Jsonl(io.BytesIO(DATA)).count()        # blank lines are not counted
```

`first_n` returns a `TakeNLines` and `last_n` a `TakeNLinesReverse`; both
offer `deserialize(into)` and `deserialize_values()` as well.

`last_n` needs a seekable binary stream (`seek` and `read`). It reads the
stream backwards in 8 KiB chunks and stops once it has `n` lines, so it stays
cheap on large files. `count()` consumes the stream.

## Reading any file backwards

```python
from jsonlstream.revbuf import RevBufReader

with open("app.log", "rb") as fh:
    async for line in RevBufReader(fh).lines():
        print(line)
```

`RevBufReader(inner, capacity=8192)` wraps a seekable binary stream.
`next_line()` returns the next line going backwards, or `None` at the start
of the stream; `lines()` gives a `Lines` async iterator over the same.
Empty lines are skipped, and `\n`, `\r\n` and lone `\r` all end a line.
Bytes that are not valid UTF-8 are replaced rather than raising.
`buffer()` shows the bytes still buffered and `into_inner()` returns the
wrapped stream.

## What it does not do

The package only reads. It has no writer for JSON Lines, no command-line
tool, and no following of a file as it grows.