"""Replay a recorded stream body through the decoder.

    $ turnstream captured_body.txt --chunk-size 7 --echo
    $ curl -sN ... | turnstream
"""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import AsyncIterator

from turnstream.decoder import StreamDecoder
from turnstream.errors import StreamError


async def replay(data: bytes, chunk_size: int) -> AsyncIterator[bytes]:
    """Yield *data* in fragments of *chunk_size* bytes."""
    for start in range(0, len(data), chunk_size):
        yield data[start:start + chunk_size]
        await asyncio.sleep(0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="turnstream",
        description="Decode a recorded chat stream body into a turn summary.",
    )
    parser.add_argument(
        "file", nargs="?",
        help="File holding the raw response body (default: stdin)",
    )
    parser.add_argument(
        "--chunk-size", type=int, default=4096,
        help="Replay the body in fragments of this many bytes",
    )
    parser.add_argument(
        "--echo", action="store_true",
        help="Print text deltas as they are decoded",
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s:%(name)s:%(levelname)s:%(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr,
    )
    if args.chunk_size < 1:
        print("--chunk-size must be positive", file=sys.stderr)
        return 2

    if args.file:
        with open(args.file, "rb") as f:
            data = f.read()
    else:
        data = sys.stdin.buffer.read()

    on_delta = None
    if args.echo:
        def on_delta(text: str) -> None:
            sys.stdout.write(text)
            sys.stdout.flush()

    decoder = StreamDecoder()
    try:
        turn = asyncio.run(decoder.decode(replay(data, args.chunk_size), on_delta))
    except StreamError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.echo:
        sys.stdout.write("\n")
    print(json.dumps(turn.to_wire(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
