"""Protocol events decoded from single stream lines.

Each line has the form ``<tag>:<value>``.  The value is JSON when it
parses as JSON and the verbatim suffix otherwise.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Tag(str, Enum):
    """Known event tags.  Lines may carry tags outside this set."""

    METADATA = "f"
    TOOL_CALL = "9"
    TOOL_RESULT = "a"
    TEXT_DELTA = "0"
    FINISH = "e"
    FINISH_STEP = "d"


@dataclass(frozen=True)
class Event:
    """One decoded protocol line.

    ``raw`` is true when the value did not parse as JSON and holds the
    text after the first colon unchanged.
    """

    tag: str
    value: Any = None
    raw: bool = False


def parse_line(line: str) -> Event | None:
    """Decode *line* into an :class:`Event`, or ``None`` if it has no tag."""
    tag, sep, value_str = line.partition(":")
    if not sep:
        return None
    try:
        return Event(tag=tag, value=json.loads(value_str))
    except (ValueError, RecursionError):
        return Event(tag=tag, value=value_str, raw=True)
