"""Drives a byte stream through reassembly, decoding and aggregation.

:class:`StreamDecoder` owns the read loop for one turn.  It exposes
the live aggregate plus ``is_streaming`` / ``error`` so a UI can
observe progress, and calls an optional ``on_delta`` callback for
every text delta in arrival order.

Use one decoder per concurrent turn.  Each ``decode()`` call keeps
its own buffers, but the observable flags live on the instance and
overlapping calls on a shared instance overwrite each other.
"""

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable
from enum import Enum

from turnstream.aggregator import apply_event, create_empty_turn
from turnstream.errors import ReadFailure, TransportUnavailable
from turnstream.events import Tag, parse_line
from turnstream.instrumentation import decode_span, record_error, record_turn
from turnstream.lines import LineReassembler
from turnstream.models import TurnAggregate

logger = logging.getLogger(__name__)

DEFAULT_ERROR = "Stream processing failed"

DeltaCallback = Callable[[str], None]


class DecodeState(Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


def _message(exc: BaseException) -> str:
    return str(exc) or DEFAULT_ERROR


def _open_reader(source) -> AsyncIterator[bytes]:
    """Return an async iterator over the body's byte fragments.

    Accepts an ``httpx.Response`` (read via ``aiter_bytes()``) or any
    async iterable of bytes.
    """
    if source is None:
        raise TransportUnavailable("No response body")
    try:
        if hasattr(source, "aiter_bytes"):
            return aiter(source.aiter_bytes())
        return aiter(source)
    except Exception as e:
        raise TransportUnavailable(_message(e)) from e


async def _read(reader: AsyncIterator[bytes]) -> bytes | None:
    """Read the next fragment, or ``None`` at end of input."""
    try:
        return await anext(reader)
    except StopAsyncIteration:
        return None
    except Exception as e:
        raise ReadFailure(_message(e)) from e


class StreamDecoder:
    """Decodes one turn at a time from a line-delimited event stream."""

    def __init__(self) -> None:
        self._current: TurnAggregate = create_empty_turn()
        self._state = DecodeState.IDLE
        self._error: str | None = None

    @property
    def current(self) -> TurnAggregate:
        """The aggregate being built (or last built)."""
        return self._current

    @property
    def state(self) -> DecodeState:
        return self._state

    @property
    def is_streaming(self) -> bool:
        return self._state is DecodeState.STREAMING

    @property
    def error(self) -> str | None:
        return self._error

    def reset(self) -> None:
        self._current = create_empty_turn()
        self._error = None

    async def decode(
        self,
        source: AsyncIterable[bytes] | None,
        on_delta: DeltaCallback | None = None,
    ) -> TurnAggregate:
        """Read *source* to the end and return a snapshot of the turn.

        Raises:
            TransportUnavailable: *source* is ``None`` or not readable.
            ReadFailure: reading a fragment raised.  Whatever was
                decoded before the failure is discarded.
        """
        self.reset()
        self._state = DecodeState.STREAMING
        turn = self._current
        lines = LineReassembler()

        async with decode_span(type(source).__name__) as span:
            try:
                reader = _open_reader(source)
                while True:
                    chunk = await _read(reader)
                    if chunk is None:
                        break
                    for line in lines.feed(chunk):
                        self._consume(turn, line, on_delta)

                tail = lines.flush()
                if tail.strip():
                    self._consume(turn, tail, on_delta)
            except asyncio.CancelledError as e:
                self._fail(span, e, "Stream cancelled")
                raise
            except Exception as e:
                self._fail(span, e, _message(e))
                raise

            self._state = DecodeState.COMPLETED
            record_turn(span, turn)

        logger.info(
            f"Decoded turn {turn.message_id}: "
            f"{len(turn.response_text)} chars, "
            f"{len(turn.tool_calls)} tool calls, "
            f"finish={turn.finish_reason}"
        )
        return turn.model_copy(deep=True)

    def _consume(
        self,
        turn: TurnAggregate,
        line: str,
        on_delta: DeltaCallback | None,
    ) -> None:
        event = parse_line(line)
        if event is None:
            logger.debug(f"Skipping line without tag: {line!r}")
            return
        apply_event(turn, event)
        if (
            on_delta is not None
            and event.tag == Tag.TEXT_DELTA.value
            and isinstance(event.value, str)
        ):
            on_delta(event.value)

    def _fail(self, span, exc: BaseException, message: str) -> None:
        self._state = DecodeState.FAILED
        self._error = message
        logger.warning(f"Stream decode failed: {message}")
        record_error(span, exc)
