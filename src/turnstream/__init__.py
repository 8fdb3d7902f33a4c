from turnstream.aggregator import apply_event, create_empty_turn
from turnstream.client import ChatClient, ChatMessage, ChatReply, ChatRequest
from turnstream.decoder import DecodeState, StreamDecoder
from turnstream.errors import (
    ChatHTTPError,
    ReadFailure,
    StreamError,
    TransportUnavailable,
)
from turnstream.events import Event, Tag, parse_line
from turnstream.instrumentation import instrument, uninstrument
from turnstream.lines import LineReassembler, extract_lines
from turnstream.models import (
    FAQMetadata,
    FAQResult,
    ToolArgs,
    ToolCallRecord,
    TurnAggregate,
    Usage,
)

__all__ = [
    "ChatClient",
    "ChatHTTPError",
    "ChatMessage",
    "ChatReply",
    "ChatRequest",
    "DecodeState",
    "Event",
    "FAQMetadata",
    "FAQResult",
    "LineReassembler",
    "ReadFailure",
    "StreamDecoder",
    "StreamError",
    "Tag",
    "ToolArgs",
    "ToolCallRecord",
    "TransportUnavailable",
    "TurnAggregate",
    "Usage",
    "apply_event",
    "create_empty_turn",
    "extract_lines",
    "instrument",
    "parse_line",
    "uninstrument",
]
