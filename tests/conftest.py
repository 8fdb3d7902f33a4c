from collections.abc import AsyncIterator

import pytest

from turnstream.instrumentation import uninstrument


# ---------------------------------------------------------------------------
# Recorded protocol bodies
# ---------------------------------------------------------------------------

SIMPLE_TURN = [
    'f:{"messageId":"msg-123"}\n',
    '0:"Hello"\n',
    '0:" world!"\n',
    'e:{"finishReason":"stop","usage":{"promptTokens":10,"completionTokens":5},"isContinued":false}\n',
]

TOOL_TURN = [
    'f:{"messageId":"msg-456"}\n',
    '9:{"toolCallId":"call-789","toolName":"ragTool","args":{"query":"test","indexName":"faqs","topK":5}}\n',
    'a:{"toolCallId":"call-789","result":[{"id":"doc-1","score":0.9,"metadata":{"title":"FAQ 1","content":"Answer 1"}}]}\n',
    '0:"Based on the FAQ results..."\n',
    'd:{"finishReason":"stop","usage":{"promptTokens":20,"completionTokens":10}}\n',
]


# ---------------------------------------------------------------------------
# Fake response bodies
# ---------------------------------------------------------------------------

def _as_bytes(chunk: str | bytes) -> bytes:
    return chunk.encode("utf-8") if isinstance(chunk, str) else chunk


async def body(*chunks: str | bytes) -> AsyncIterator[bytes]:
    """Async byte stream yielding *chunks* in order."""
    for chunk in chunks:
        yield _as_bytes(chunk)


async def failing_body(
    *chunks: str | bytes, error: BaseException,
) -> AsyncIterator[bytes]:
    """Yield *chunks*, then raise *error* on the next read."""
    for chunk in chunks:
        yield _as_bytes(chunk)
    raise error


def split_every(data: bytes, size: int) -> list[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


class FakeResponse:
    """Minimal stand-in for ``httpx.Response`` streaming."""

    def __init__(self, *chunks: str | bytes):
        self._chunks = chunks
        self.aiter_calls = 0

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        self.aiter_calls += 1
        return body(*self._chunks)


@pytest.fixture(autouse=True)
def _reset_tracer():
    uninstrument()
    yield
    uninstrument()
