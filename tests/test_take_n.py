import io
from dataclasses import dataclass

import pytest

from jsonlstream.take_n import JsonlError, TakeNLines, TakeNLinesReverse, parse_line

RECORDS = [
    '{"id": 1, "name": "Alice", "active": true}',
    '{"id": 2, "name": "Bob", "active": false}',
    '{"id": 3, "name": "Charlie", "active": true}',
    '{"id": 4, "name": "Diana", "active": false}',
    '{"id": 5, "name": "Eve", "active": true}',
]
DATA = ("\n".join(RECORDS) + "\n").encode("utf-8")


@dataclass
class Record:
    id: int
    name: str
    active: bool


def to_record(value):
    return Record(**value)


class AsyncLines:
    def __init__(self, data):
        self._raw = io.BytesIO(data)

    async def readline(self):
        return self._raw.readline()

    async def seek(self, offset, whence=io.SEEK_SET):
        return self._raw.seek(offset, whence)

    async def read(self, size=-1):
        return self._raw.read(size)


class Truncated(io.BytesIO):
    def read(self, size=-1):
        return b""


async def collect(stream):
    return [item async for item in stream]


@pytest.mark.asyncio
async def test_first_n_in_order():
    assert await collect(TakeNLines(io.BytesIO(DATA), 3)) == RECORDS[:3]


@pytest.mark.asyncio
async def test_first_n_more_than_available():
    assert await collect(TakeNLines(io.BytesIO(DATA), 50)) == RECORDS


@pytest.mark.asyncio
async def test_first_n_zero():
    assert await collect(TakeNLines(io.BytesIO(DATA), 0)) == []


@pytest.mark.asyncio
async def test_first_n_skips_blank_and_trims():
    data = b'  {"value": 1}  \n\n\r\n{"value": 2}\r\n\n{"value": 3}'
    result = await collect(TakeNLines(io.BytesIO(data), 3))
    assert result == ['{"value": 1}', '{"value": 2}', '{"value": 3}']


@pytest.mark.asyncio
async def test_first_n_text_stream():
    text = "\n".join(RECORDS)
    assert await collect(TakeNLines(io.StringIO(text), 2)) == RECORDS[:2]


@pytest.mark.asyncio
async def test_first_n_async_reader():
    assert await collect(TakeNLines(AsyncLines(DATA), 2)) == RECORDS[:2]


@pytest.mark.asyncio
async def test_first_n_invalid_utf8_raises_and_continues():
    stream = TakeNLines(io.BytesIO(b'{"a": 1}\n\xff\xfe\n{"b": 2}\n'), 5)
    assert await stream.__anext__() == '{"a": 1}'
    with pytest.raises(JsonlError, match="IO error"):
        await stream.__anext__()
    assert await stream.__anext__() == '{"b": 2}'
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()


@pytest.mark.asyncio
async def test_first_n_deserialize_into_records():
    records = await collect(TakeNLines(io.BytesIO(DATA), 3).deserialize(to_record))
    assert [r.id for r in records] == [1, 2, 3]
    assert [r.name for r in records] == ["Alice", "Bob", "Charlie"]


@pytest.mark.asyncio
async def test_first_n_deserialize_values():
    data = b'{"id": 1, "name": "Alice"}\n{"id": 2, "name": "Bob"}\n{"id": 3, "name": "Charlie"}\n'
    values = await collect(TakeNLines(io.BytesIO(data), 2).deserialize_values())
    assert values == [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}]


@pytest.mark.asyncio
async def test_deserialize_error_then_continues():
    data = b'{"value": 1}\n{"value": invalid_json}\n{"value": 3}\n'
    parsed = TakeNLines(io.BytesIO(data), 10).deserialize_values()
    assert await parsed.__anext__() == {"value": 1}
    with pytest.raises(JsonlError, match="Failed to parse JSON line"):
        await parsed.__anext__()
    assert await parsed.__anext__() == {"value": 3}


@pytest.mark.asyncio
async def test_last_n_newest_first():
    stream = await TakeNLinesReverse.from_reader(io.BytesIO(DATA), 2)
    assert await collect(stream) == [RECORDS[4], RECORDS[3]]


@pytest.mark.asyncio
async def test_last_n_deserialize_into_records():
    stream = await TakeNLinesReverse.from_reader(io.BytesIO(DATA), 2)
    records = await collect(stream.deserialize(to_record))
    assert records == [Record(5, "Eve", True), Record(4, "Diana", False)]


@pytest.mark.asyncio
async def test_last_n_deserialize_values():
    stream = await TakeNLinesReverse.from_reader(io.BytesIO(DATA), 1)
    assert await collect(stream.deserialize_values()) == [
        {"id": 5, "name": "Eve", "active": True}
    ]


@pytest.mark.asyncio
async def test_last_n_skips_blank_lines():
    data = b'{"id": 1}\n\n{"id": 2}\n\n\n{"id": 3}\n\n'
    stream = await TakeNLinesReverse.from_reader(io.BytesIO(data), 3)
    assert await collect(stream) == ['{"id": 3}', '{"id": 2}', '{"id": 1}']


@pytest.mark.asyncio
async def test_last_n_empty_and_zero():
    empty = await TakeNLinesReverse.from_reader(io.BytesIO(b""), 5)
    zero = await TakeNLinesReverse.from_reader(io.BytesIO(DATA), 0)
    assert await collect(empty) == []
    assert await collect(zero) == []


@pytest.mark.asyncio
async def test_last_n_spanning_many_chunks_matches_forward():
    lines = [f'{{"id": {i}, "value": "item_{i}"}}' for i in range(2000)]
    data = ("\n".join(lines) + "\n").encode("utf-8")
    assert len(data) > 3 * 8192
    forward = await collect(TakeNLines(io.BytesIO(data), len(lines)))
    backward = await collect(
        await TakeNLinesReverse.from_reader(io.BytesIO(data), len(lines))
    )
    assert forward == lines
    assert backward == forward[::-1]


@pytest.mark.asyncio
async def test_last_n_partial_tail_across_chunks():
    lines = [f"line {i}" for i in range(3000)]
    data = "\n".join(lines).encode("utf-8")
    stream = await TakeNLinesReverse.from_reader(io.BytesIO(data), 1500)
    assert await collect(stream) == lines[::-1][:1500]


@pytest.mark.asyncio
async def test_last_n_async_reader():
    stream = await TakeNLinesReverse.from_reader(AsyncLines(DATA), 3)
    assert await collect(stream) == RECORDS[:1:-1]


@pytest.mark.asyncio
async def test_last_n_short_read_raises():
    with pytest.raises(JsonlError, match="IO error"):
        await TakeNLinesReverse.from_reader(Truncated(DATA), 2)


@pytest.mark.asyncio
async def test_reverse_from_given_lines():
    stream = TakeNLinesReverse(RECORDS[:2])
    assert await collect(stream) == RECORDS[:2]
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()


def test_parse_line_value():
    assert parse_line('{"valid": true}') == {"valid": True}


def test_parse_line_into():
    assert parse_line(RECORDS[1], to_record) == Record(2, "Bob", False)


def test_parse_line_invalid_json():
    with pytest.raises(JsonlError, match="Failed to parse JSON line"):
        parse_line("invalid_json_line")


def test_parse_line_conversion_failure():
    def strict(value):
        if not isinstance(value["value"], int):
            raise ValueError("not a number")
        return value["value"]

    with pytest.raises(JsonlError, match="Failed to parse JSON line"):
        parse_line('{"value": "not_a_number"}', strict)
    assert parse_line('{"value": 42}', strict) == 42