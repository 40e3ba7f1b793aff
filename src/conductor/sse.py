"""Server-Sent Events adapter for streaming events."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

from conductor.events import StreamEvent


async def sse_generator(
    event_stream: AsyncIterator[StreamEvent],
) -> AsyncIterator[str]:
    """Convert a StreamEvent async iterator into SSE-formatted strings."""
    async for event in event_stream:
        yield f"data: {json.dumps(event.to_dict())}\n\n"
    yield "data: [DONE]\n\n"
