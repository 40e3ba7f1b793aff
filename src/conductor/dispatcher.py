import asyncio
import json
import logging
from dataclasses import dataclass

from conductor.errors import (
    InvalidArguments,
    ToolError,
    ToolExecutionFailure,
    ToolNotFound,
    ToolTimeout,
)
from conductor.registry import ToolDescriptor, ToolRegistry, ToolResult
from conductor.streaming import ToolCall

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT = 30.0


@dataclass
class ToolOutcome:
    """Result of executing a single tool call."""

    output: str
    is_error: bool


def format_tool_result(result: ToolResult) -> str:
    """Flatten a tool result's content items into one text block.

    Text items are kept verbatim. Any other item with a payload is
    rendered as indented JSON, and items with neither are skipped.
    """
    pieces = []
    for item in result.content:
        if item.type == "text" and item.text:
            pieces.append(item.text)
        elif item.data is not None:
            pieces.append(json.dumps(item.data, indent=2, default=str))
    return "\n\n".join(pieces)


def _log_abandoned(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(f"Abandoned tool call finished with error: {exc}")


def _to_outcome(result: ToolResult) -> ToolOutcome:
    try:
        return ToolOutcome(
            output=format_tool_result(result), is_error=bool(result.is_error),
        )
    except Exception as e:
        raise ToolExecutionFailure(f"Unreadable tool result: {e}") from e


class ToolDispatcher:
    """Executes completed tool calls against a :class:`ToolRegistry`.

    Every failure is turned into an error :class:`ToolOutcome` so the
    caller can always append something to the transcript.

    Args:
        registry: Registry that owns the providers.
        timeout: Seconds to wait for one call before giving up on it.
    """

    def __init__(self, registry: ToolRegistry, timeout: float = DEFAULT_TOOL_TIMEOUT):
        self.registry = registry
        self.timeout = timeout
        # timed-out calls keep running; hold them until they finish
        self._abandoned: set[asyncio.Task] = set()

    async def dispatch(self, tc: ToolCall, tools: list[ToolDescriptor]) -> ToolOutcome:
        try:
            result = await self._execute(tc, tools)
            return _to_outcome(result)
        except ToolError as e:
            logger.warning(f"Tool {tc.name} failed: {e}")
            return ToolOutcome(
                output=f"Error executing {tc.name}: {e}", is_error=True,
            )

    def _abandon(self, task: asyncio.Task) -> None:
        self._abandoned.add(task)
        task.add_done_callback(self._abandoned.discard)
        task.add_done_callback(_log_abandoned)

    async def _execute(self, tc: ToolCall, tools: list[ToolDescriptor]) -> ToolResult:
        descriptor = next((t for t in tools if t.name == tc.name), None)
        if descriptor is None:
            raise ToolNotFound(tc.name)

        try:
            params = json.loads(tc.arguments)
        except json.JSONDecodeError as e:
            raise InvalidArguments(f"Invalid tool arguments: {e}") from e
        if not isinstance(params, dict):
            raise InvalidArguments(
                f"Invalid tool arguments: expected an object, got {type(params).__name__}"
            )

        logger.info(f"Calling {tc.name} on {descriptor.provider_id} with {params}")
        task = asyncio.ensure_future(
            self.registry.execute(descriptor.provider_id, tc.name, params)
        )
        try:
            # shield() keeps the underlying call alive when the wait times out
            return await asyncio.wait_for(asyncio.shield(task), self.timeout)
        except asyncio.TimeoutError as e:
            self._abandon(task)
            raise ToolTimeout(tc.name, self.timeout) from e
        except ToolError:
            raise
        except Exception as e:
            raise ToolExecutionFailure(str(e) or type(e).__name__) from e
