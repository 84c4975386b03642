"""
Pull-based stream iterator over server-sent event lines.

The parser sits between a line source (typically
``httpx.Response.aiter_lines()``) and a provider-specific line decoder:
- Blank lines are frame separators and are skipped
- Lines without the ``data: `` prefix are comments/keep-alives and are skipped
- Lines the decoder rejects are skipped; the decoder logs why
- Failures of the line source itself propagate to the consumer
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterable
from typing import Generic

import structlog

from .models import DATA_PREFIX, EventT, LineDecoder, StreamStats

logger = structlog.get_logger(__name__)


class StreamingParser(Generic[EventT]):
    """Turns a lazy sequence of text lines into a lazy sequence of events.

    Exactly one line is pulled from the source per step, so the consumer's
    pace is the only backpressure. A parser may be reused for several
    streams; its counters accumulate until :meth:`reset_stats`.
    """

    def __init__(self, decoder: LineDecoder[EventT], *, provider: str = "unknown"):
        self.decoder = decoder
        self.provider = provider
        self.stats = StreamStats()

    async def parse_lines(self, lines: AsyncIterable[str]) -> AsyncGenerator[EventT]:
        """
        Yield every successfully decoded event, in line order.

        Iteration ends when ``lines`` is exhausted. Exceptions raised while
        pulling from ``lines`` are not caught here.
        """
        async for line in lines:
            self.stats.total_lines += 1

            if not line.strip():
                self.stats.blank_lines += 1
                continue

            if not line.startswith(DATA_PREFIX):
                self.stats.noise_lines += 1
                logger.debug(
                    "Skipping non-data stream line",
                    provider=self.provider,
                    line=line,
                )
                continue

            event = self.decoder(line)
            if event is None:
                self.stats.decode_failures += 1
                continue

            self.stats.decoded_events += 1
            yield event

    def get_stats(self) -> dict[str, int]:
        """Get streaming statistics for monitoring."""
        return self.stats.as_dict()

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        self.stats = StreamStats()
