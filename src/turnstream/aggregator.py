"""Folds decoded events into a :class:`TurnAggregate`.

``apply_event`` mutates the aggregate it is given and returns it.
Payloads that do not have the expected shape are skipped; a single
odd event never aborts the turn.
"""

import logging
from collections.abc import Callable

from pydantic import ValidationError

from turnstream.events import Event, Tag
from turnstream.models import ToolCallRecord, TurnAggregate, Usage

logger = logging.getLogger(__name__)


def create_empty_turn() -> TurnAggregate:
    return TurnAggregate()


def _payload(event: Event) -> dict | None:
    if isinstance(event.value, dict):
        return event.value
    logger.debug(f"Skipping '{event.tag}' event with non-object payload: {event.value!r}")
    return None


def _apply_usage(turn: TurnAggregate, payload: dict) -> None:
    usage = payload.get("usage")
    if not usage:
        return
    try:
        turn.usage = Usage.model_validate(usage)
    except ValidationError as e:
        logger.debug(f"Ignoring usage that is not an object: {usage!r} ({e})")


def _apply_metadata(turn: TurnAggregate, event: Event) -> None:
    payload = _payload(event)
    if payload and payload.get("messageId"):
        turn.message_id = payload["messageId"]


def _apply_tool_call(turn: TurnAggregate, event: Event) -> None:
    payload = _payload(event)
    if payload is None:
        return
    turn.tool_calls.append(ToolCallRecord(
        id=payload.get("toolCallId"),
        name=payload.get("toolName"),
        args=payload.get("args"),
    ))


def _apply_tool_result(turn: TurnAggregate, event: Event) -> None:
    payload = _payload(event)
    if payload is None:
        return
    call_id = payload.get("toolCallId")
    record = next((tc for tc in turn.tool_calls if tc.id == call_id), None)
    if record is None:
        logger.debug(f"No tool call with id {call_id!r}; dropping result")
        return
    record.result = payload.get("result")


def _apply_text_delta(turn: TurnAggregate, event: Event) -> None:
    if not isinstance(event.value, str):
        logger.debug(f"Skipping non-string text delta: {event.value!r}")
        return
    turn.response_text += event.value


def _apply_finish(turn: TurnAggregate, event: Event) -> None:
    payload = _payload(event)
    if payload is None:
        return
    _apply_usage(turn, payload)
    if payload.get("finishReason"):
        turn.finish_reason = payload["finishReason"]
    if isinstance(payload.get("isContinued"), bool):
        turn.is_continued = payload["isContinued"]


def _apply_finish_step(turn: TurnAggregate, event: Event) -> None:
    payload = _payload(event)
    if payload is None:
        return
    _apply_usage(turn, payload)
    if payload.get("finishReason"):
        turn.finish_reason = payload["finishReason"]


_HANDLERS: dict[str, Callable[[TurnAggregate, Event], None]] = {
    Tag.METADATA.value: _apply_metadata,
    Tag.TOOL_CALL.value: _apply_tool_call,
    Tag.TOOL_RESULT.value: _apply_tool_result,
    Tag.TEXT_DELTA.value: _apply_text_delta,
    Tag.FINISH.value: _apply_finish,
    Tag.FINISH_STEP.value: _apply_finish_step,
}


def apply_event(turn: TurnAggregate, event: Event) -> TurnAggregate:
    """Fold *event* into *turn* and return it.

    Unknown tags leave *turn* untouched and return the same object.
    """
    handler = _HANDLERS.get(event.tag)
    if handler is not None:
        handler(turn, event)
    return turn
