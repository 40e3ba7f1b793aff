"""Streaming events emitted during a run.

Every run ends with exactly one :class:`DoneEvent`.  An aborted run
emits an :class:`ErrorEvent` immediately before it.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import ClassVar


@dataclass
class StreamEvent:
    """Base for all streaming events."""

    type: ClassVar[str] = ""

    def to_dict(self) -> dict:
        return {"type": self.type, **asdict(self)}


@dataclass
class ContentEvent(StreamEvent):
    """Token-level text delta from the model stream."""

    type: ClassVar[str] = "content"
    content: str = ""


@dataclass
class ToolExecutionStartEvent(StreamEvent):
    type: ClassVar[str] = "tool_execution_start"
    tool_name: str = ""
    tool_call_id: str = ""


@dataclass
class ToolExecutionResultEvent(StreamEvent):
    type: ClassVar[str] = "tool_execution_result"
    tool_name: str = ""
    tool_call_id: str = ""
    is_error: bool = False


@dataclass
class ErrorEvent(StreamEvent):
    """The run was aborted.

    ``kind`` is ``"stream_error"`` for model failures and
    ``"max_turns_exceeded"`` for the turn ceiling.
    """

    type: ClassVar[str] = "error"
    error: str = ""
    kind: str = "stream_error"


@dataclass
class DoneEvent(StreamEvent):
    """Final event, always the last one yielded."""

    type: ClassVar[str] = "done"
