"""Line reassembly for fragmented byte streams.

Bytes arrive in whatever fragments the transport delivers.
:class:`LineReassembler` decodes them incrementally and hands back
complete, newline-terminated lines while keeping the unterminated
tail as its remainder.
"""

from __future__ import annotations

import codecs


def extract_lines(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete lines and the trailing remainder.

    Blank and whitespace-only lines are dropped.
    """
    pieces = buffer.split("\n")
    remainder = pieces.pop()
    lines = [line for line in pieces if line.strip()]
    return lines, remainder


class LineReassembler:
    """Turns successive byte fragments into complete text lines."""

    def __init__(self, encoding: str = "utf-8") -> None:
        # "replace" mirrors a browser TextDecoder: bad bytes never raise.
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._remainder = ""

    @property
    def remainder(self) -> str:
        return self._remainder

    def feed(self, data: bytes) -> list[str]:
        """Consume one fragment and return the lines it completed."""
        text = self._decoder.decode(data)
        if not text:
            return []
        lines, self._remainder = extract_lines(self._remainder + text)
        return lines

    def flush(self) -> str:
        """Finish decoding and return the unterminated remainder.

        The remainder is cleared. Callers decide whether it is worth
        decoding as a final line.
        """
        tail = self._remainder + self._decoder.decode(b"", final=True)
        self._remainder = ""
        return tail
