"""One model turn: stream text through, assemble tool calls."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum

from conductor.events import ContentEvent
from conductor.message import Message, MessageRole, ToolCallRequestMessage
from conductor.provider import ModelProvider
from conductor.registry import ToolDescriptor
from conductor.streaming import ToolCall, ToolCallAccumulator

logger = logging.getLogger(__name__)


class TurnClassification(Enum):
    NORMAL = "normal"
    TOOL_INVOCATION = "tool_invocation"


@dataclass
class TurnOutcome:
    assistant_message: Message
    tool_calls: list[ToolCall]
    classification: TurnClassification


class ResponseCollector:
    """Drives a single streaming model call.

    Text deltas are yielded as :class:`ContentEvent` the moment they
    arrive; tool-call fragments are accumulated silently.  Once
    :meth:`collect` is exhausted, :attr:`outcome` holds the turn's
    :class:`TurnOutcome`.  Stream errors propagate unchanged.

    Create one collector per turn.
    """

    def __init__(self, provider: ModelProvider):
        self.provider = provider
        self.outcome: TurnOutcome | None = None

    async def collect(
        self,
        transcript: list[Message],
        tools: list[ToolDescriptor],
    ) -> AsyncIterator[ContentEvent]:
        acc = ToolCallAccumulator()
        full_content = ""
        saw_tool_calls = False

        async for chunk in self.provider.stream(transcript, tools):
            if chunk.content_delta:
                full_content += chunk.content_delta
                yield ContentEvent(content=chunk.content_delta)
            if chunk.tool_call_fragments:
                saw_tool_calls = True
                for frag in chunk.tool_call_fragments:
                    acc.feed(frag)

        completed_calls = acc.finalize()
        if completed_calls:
            msg = ToolCallRequestMessage(
                content=full_content, tool_calls=completed_calls,
            )
        else:
            msg = Message(role=MessageRole.ASSISTANT, content=full_content)

        classification = (
            TurnClassification.TOOL_INVOCATION
            if saw_tool_calls else TurnClassification.NORMAL
        )
        if saw_tool_calls and len(completed_calls) < len(acc):
            logger.warning(
                f"Dropped {len(acc) - len(completed_calls)} malformed "
                "tool call(s) from stream"
            )
        self.outcome = TurnOutcome(
            assistant_message=msg,
            tool_calls=completed_calls,
            classification=classification,
        )
