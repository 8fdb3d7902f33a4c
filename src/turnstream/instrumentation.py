"""Optional OpenTelemetry tracing of decode sessions.

Tracing stays off until :func:`instrument` is called.  Without
``opentelemetry-api`` installed every helper here is a no-op.
"""

import importlib.util
import logging
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

_tracer = None


def instrument(*, tracer_name: str = "turnstream") -> None:
    """Start emitting a ``decode_stream`` span per ``decode()`` call.

    Configure a TracerProvider first, otherwise the spans go nowhere.

    Raises:
        ImportError: ``opentelemetry-api`` is missing; install the
            ``turnstream[otel]`` extra.
    """
    global _tracer
    if importlib.util.find_spec("opentelemetry.trace") is None:
        raise ImportError(
            "Tracing needs opentelemetry-api: pip install turnstream[otel]"
        )
    from opentelemetry import trace

    tracer = trace.get_tracer(tracer_name)
    if isinstance(tracer, trace.NoOpTracer):
        logger.info(
            "No TracerProvider configured; decode spans will be dropped"
        )
    else:
        logger.info(f"Tracing decode sessions as {tracer_name!r}")
    _tracer = tracer


def uninstrument() -> None:
    global _tracer
    _tracer = None


@asynccontextmanager
async def decode_span(source: str):
    """Wrap a ``StreamDecoder.decode()`` call in a ``decode_stream`` span."""
    if _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(
        "decode_stream",
        attributes={"turnstream.source": source},
    ) as span:
        yield span


def record_turn(span, turn) -> None:
    """Copy usage, finish reason and tool-call count onto *span*."""
    if span is None or turn is None:
        return
    usage = turn.usage
    if usage is not None and usage.prompt_tokens is not None:
        span.set_attribute("gen_ai.usage.input_tokens", usage.prompt_tokens)
    if usage is not None and usage.completion_tokens is not None:
        span.set_attribute("gen_ai.usage.output_tokens", usage.completion_tokens)
    if turn.finish_reason:
        span.set_attribute("gen_ai.response.finish_reasons", [turn.finish_reason])
    if turn.message_id:
        span.set_attribute("gen_ai.response.id", turn.message_id)
    span.set_attribute("turnstream.tool_calls", len(turn.tool_calls))


def record_error(span, exception: BaseException) -> None:
    """Mark *span* failed with the exception that aborted decoding."""
    if span is None:
        return
    from opentelemetry.trace import Status, StatusCode

    span.record_exception(exception)
    span.set_attribute("error.type", type(exception).__name__)
    span.set_status(Status(StatusCode.ERROR, str(exception)))
