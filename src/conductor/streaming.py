"""Streaming primitives for provider responses.

Providers yield :class:`StreamChunk` objects.  The
:class:`ToolCallAccumulator` reassembles tool calls whose arguments
arrive in fragments across multiple chunks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class ToolCallFragment:
    """A fragment of a tool call from a streaming chunk.

    ``index`` is the position of the call within one response, not a
    globally unique key.
    """

    index: int
    call_id: str | None = None
    type: str | None = None
    name: str | None = None
    arguments_delta: str | None = None


@dataclass
class StreamChunk:
    """Normalised streaming chunk from any provider."""

    content_delta: str | None = None
    tool_call_fragments: list[ToolCallFragment] | None = None
    finish_reason: str | None = None


@dataclass(frozen=True)
class ToolCall:
    """A resolved tool call ready for the transcript."""

    id: str
    name: str
    arguments: str = "{}"
    type: str = "function"

    def to_provider_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass
class _PartialToolCall:
    id: str = ""
    type: str = ""
    name: str = ""
    arguments: str = ""


class ToolCallAccumulator:
    """Assembles complete tool calls from streaming fragments.

    Merge rule per index: ``call_id``, ``type`` and ``name`` are replaced
    by any non-empty value, ``arguments_delta`` is appended.
    """

    def __init__(self) -> None:
        self._pending: dict[int, _PartialToolCall] = {}

    def feed(self, fragment: ToolCallFragment) -> None:
        partial = self._pending.setdefault(fragment.index, _PartialToolCall())
        if fragment.call_id:
            partial.id = fragment.call_id
        if fragment.type:
            partial.type = fragment.type
        if fragment.name:
            partial.name = fragment.name
        if fragment.arguments_delta:
            partial.arguments += fragment.arguments_delta

    def finalize(self) -> list[ToolCall]:
        """Return completed tool calls in index order.

        Entries missing an id or a name are dropped, as are later entries
        reusing an id already taken by a lower index.
        """
        calls = []
        seen_ids = set()
        for index in sorted(self._pending):
            partial = self._pending[index]
            if not partial.id or not partial.name:
                logger.debug(
                    f"Dropping incomplete tool call at index {index}: "
                    f"id={partial.id!r}, name={partial.name!r}"
                )
                continue
            if partial.id in seen_ids:
                logger.warning(
                    f"Dropping tool call at index {index}: duplicate id {partial.id!r}"
                )
                continue
            seen_ids.add(partial.id)
            calls.append(ToolCall(
                id=partial.id,
                name=partial.name,
                arguments=partial.arguments or "{}",
                type=partial.type or "function",
            ))
        return calls

    def __len__(self) -> int:
        return len(self._pending)
