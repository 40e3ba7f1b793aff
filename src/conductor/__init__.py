from conductor.collector import ResponseCollector, TurnClassification, TurnOutcome
from conductor.config import Settings, configure_logging, get_settings
from conductor.dispatcher import ToolDispatcher, ToolOutcome, format_tool_result
from conductor.errors import (
    ConductorError,
    InvalidArguments,
    MaxTurnsExceeded,
    StreamError,
    ToolError,
    ToolExecutionFailure,
    ToolNotFound,
    ToolProviderError,
    ToolTimeout,
)
from conductor.events import (
    ContentEvent,
    DoneEvent,
    ErrorEvent,
    StreamEvent,
    ToolExecutionResultEvent,
    ToolExecutionStartEvent,
)
from conductor.instrumentation import instrument, uninstrument
from conductor.message import (
    Message,
    MessageRole,
    ToolCallRequestMessage,
    ToolCallResultMessage,
)
from conductor.provider import ModelProvider, OpenAIProvider
from conductor.registry import (
    ProviderRegistry,
    ToolContent,
    ToolDescriptor,
    ToolProvider,
    ToolRegistry,
    ToolResult,
)
from conductor.runner import RunResult, RunState, Runner, next_state
from conductor.sse import sse_generator
from conductor.streaming import StreamChunk, ToolCall, ToolCallAccumulator, ToolCallFragment
from conductor.tools import FunctionToolProvider, Tool, tool

__all__ = [
    "ConductorError",
    "ContentEvent",
    "DoneEvent",
    "ErrorEvent",
    "FunctionToolProvider",
    "InvalidArguments",
    "MaxTurnsExceeded",
    "Message",
    "MessageRole",
    "ModelProvider",
    "OpenAIProvider",
    "ProviderRegistry",
    "ResponseCollector",
    "RunResult",
    "RunState",
    "Runner",
    "Settings",
    "StreamChunk",
    "StreamError",
    "StreamEvent",
    "Tool",
    "ToolCall",
    "ToolCallAccumulator",
    "ToolCallFragment",
    "ToolCallRequestMessage",
    "ToolCallResultMessage",
    "ToolContent",
    "ToolDescriptor",
    "ToolDispatcher",
    "ToolError",
    "ToolExecutionFailure",
    "ToolExecutionResultEvent",
    "ToolExecutionStartEvent",
    "ToolNotFound",
    "ToolOutcome",
    "ToolProvider",
    "ToolProviderError",
    "ToolRegistry",
    "ToolResult",
    "ToolTimeout",
    "TurnClassification",
    "TurnOutcome",
    "configure_logging",
    "format_tool_result",
    "get_settings",
    "instrument",
    "next_state",
    "sse_generator",
    "tool",
    "uninstrument",
]
