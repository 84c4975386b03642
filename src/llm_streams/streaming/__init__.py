"""
Streaming functionality shared by the provider decoders.

This package contains:
- SSE framing constants
- The pull-based stream iterator
- Per-stream statistics
"""

from __future__ import annotations

from .models import DATA_PREFIX, DONE_MARKER, LineDecoder, StreamStats, strip_data_prefix
from .parser import StreamingParser

__all__ = [
    "DATA_PREFIX",
    "DONE_MARKER",
    "LineDecoder",
    "StreamStats",
    "StreamingParser",
    "strip_data_prefix",
]
