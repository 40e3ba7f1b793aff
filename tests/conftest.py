import asyncio
import json

import pytest

from conductor.dispatcher import ToolDispatcher
from conductor.message import Message, MessageRole
from conductor.provider import ModelProvider
from conductor.registry import (
    ProviderRegistry,
    ToolDescriptor,
    ToolProvider,
    ToolResult,
)
from conductor.runner import Runner
from conductor.streaming import StreamChunk, ToolCallFragment
from conductor.tools import FunctionToolProvider, tool


# ---------------------------------------------------------------------------
# Mock model provider
# ---------------------------------------------------------------------------

class MockProvider(ModelProvider):
    """Provider that replays pre-queued chunk lists. No network calls.

    Each entry of ``responses`` is one turn: a list of StreamChunks, or
    an exception instance to raise when the stream is opened.
    """

    name = "mock"
    model = "mock-model"

    def __init__(self):
        self.responses: list[list[StreamChunk] | Exception] = []
        self.call_log: list[dict] = []

    async def stream(self, messages, tools):
        self.call_log.append({"messages": list(messages), "tools": tools})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        for chunk in response:
            yield chunk


# ---------------------------------------------------------------------------
# Response builder helpers
# ---------------------------------------------------------------------------

def make_text_response(content: str, pieces: int = 1) -> list[StreamChunk]:
    """A text-only turn, optionally split into *pieces* deltas."""
    size = max(1, -(-len(content) // pieces))
    chunks = [
        StreamChunk(content_delta=content[i:i + size])
        for i in range(0, len(content), size)
    ]
    chunks.append(StreamChunk(finish_reason="stop"))
    return chunks


def make_tool_call_response(
    name: str,
    args: dict | str,
    call_id: str = "call_1",
    content: str | None = None,
) -> list[StreamChunk]:
    """A turn containing a single tool call with streamed arguments."""
    return make_multi_tool_call_response([(name, args, call_id)], content=content)


def make_multi_tool_call_response(
    calls: list[tuple[str, dict | str, str]],
    content: str | None = None,
) -> list[StreamChunk]:
    """A turn containing several tool calls.

    Each item in *calls* is ``(func_name, args, call_id)``; *args* may be
    a dict or raw argument text.  Arguments are streamed in two halves.
    """
    chunks = []
    if content:
        chunks.append(StreamChunk(content_delta=content))
    for index, (name, args, call_id) in enumerate(calls):
        raw = args if isinstance(args, str) else json.dumps(args)
        half = len(raw) // 2
        chunks.append(StreamChunk(tool_call_fragments=[ToolCallFragment(
            index=index, call_id=call_id, type="function", name=name,
            arguments_delta=raw[:half],
        )]))
        chunks.append(StreamChunk(tool_call_fragments=[ToolCallFragment(
            index=index, arguments_delta=raw[half:],
        )]))
    chunks.append(StreamChunk(finish_reason="tool_calls"))
    return chunks


def user(content: str) -> Message:
    return Message(role=MessageRole.USER, content=content)


# ---------------------------------------------------------------------------
# Tools and providers
# ---------------------------------------------------------------------------

@tool
def echo(text: str):
    """Echo text back."""
    return text


@tool
def get_data():
    """Return structured data."""
    return {"items": [1, 2, 3]}


@tool
async def async_echo(text: str):
    """Async echo."""
    return f"async: {text}"


@tool
def explode():
    """Always fails."""
    raise RuntimeError("boom")


class HangingProvider(ToolProvider):
    """Tool provider whose calls never complete."""

    def __init__(self, provider_id: str = "hang"):
        super().__init__(provider_id)
        self.started = 0

    def list_tools(self) -> list[ToolDescriptor]:
        return [ToolDescriptor(name="hang", provider_id=self.provider_id)]

    async def call_tool(self, name: str, arguments: dict) -> ToolResult:
        self.started += 1
        await asyncio.Event().wait()


class RecordingProvider(ToolProvider):
    """Records calls and returns a canned result."""

    def __init__(self, provider_id: str, result: ToolResult, tool_names=("record",)):
        super().__init__(provider_id)
        self.result = result
        self.tool_names = tool_names
        self.calls: list[tuple[str, dict]] = []

    def list_tools(self) -> list[ToolDescriptor]:
        return [
            ToolDescriptor(name=n, provider_id=self.provider_id)
            for n in self.tool_names
        ]

    async def call_tool(self, name: str, arguments: dict) -> ToolResult:
        self.calls.append((name, arguments))
        return self.result


@pytest.fixture
def mock_provider():
    return MockProvider()


@pytest.fixture
def registry():
    return ProviderRegistry([
        FunctionToolProvider("local", [echo, get_data, async_echo, explode]),
    ])


@pytest.fixture
def make_runner(mock_provider, registry):
    """Factory fixture building a Runner over the mock provider."""
    def _make(max_turns=10, timeout=30.0, tool_registry=None, provider=None):
        return Runner(
            provider=provider or mock_provider,
            dispatcher=ToolDispatcher(tool_registry or registry, timeout=timeout),
            max_turns=max_turns,
        )
    return _make
