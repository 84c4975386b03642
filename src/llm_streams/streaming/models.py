"""
Framing constants and bookkeeping dataclasses for server-sent event streams.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import TypeVar

# Every data frame is one line of the exact form ``data: <json>``
DATA_PREFIX = "data: "

# Chat completions streams end with this payload; it carries no event
DONE_MARKER = "[DONE]"

EventT = TypeVar("EventT")

# Turns one ``data:`` line into an event, or ``None`` when it cannot
LineDecoder = Callable[[str], EventT | None]


def strip_data_prefix(line: str) -> str | None:
    """Return the payload of a ``data: `` line, or ``None`` for any other line."""
    if not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX):]


@dataclass
class StreamStats:
    """Mutable per-parser counters for monitoring."""
    total_lines: int = 0
    blank_lines: int = 0
    noise_lines: int = 0
    decoded_events: int = 0
    decode_failures: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)
