import asyncio
import json

import pytest

from conductor.dispatcher import ToolDispatcher, format_tool_result
from conductor.registry import ProviderRegistry, ToolContent, ToolResult
from conductor.streaming import ToolCall

from tests.conftest import HangingProvider, RecordingProvider


def _call(name, arguments="{}", call_id="call_1"):
    return ToolCall(id=call_id, name=name, arguments=arguments)


# ---------------------------------------------------------------------------
# format_tool_result
# ---------------------------------------------------------------------------


class TestFormatToolResult:
    def test_text_items_joined_with_blank_line(self):
        result = ToolResult(content=[
            ToolContent(type="text", text="first"),
            ToolContent(type="text", text="second"),
        ])
        assert format_tool_result(result) == "first\n\nsecond"

    def test_structured_payload_rendered_as_indented_json(self):
        result = ToolResult(content=[
            ToolContent(type="text", text="Found:"),
            ToolContent(type="json", data={"id": 7, "tags": ["a"]}),
        ])
        expected = "Found:\n\n" + json.dumps({"id": 7, "tags": ["a"]}, indent=2)
        assert format_tool_result(result) == expected

    def test_empty_items_skipped(self):
        result = ToolResult(content=[
            ToolContent(type="image"),
            ToolContent(type="text", text=""),
            ToolContent(type="text", text="only"),
        ])
        assert format_tool_result(result) == "only"

    def test_no_content(self):
        assert format_tool_result(ToolResult()) == ""

    def test_text_only_taken_from_text_items(self):
        result = ToolResult(content=[
            ToolContent(type="resource", text="ignored", data={"uri": "file:///a"}),
            ToolContent(type="image", text="alt text"),
        ])
        assert format_tool_result(result) == json.dumps({"uri": "file:///a"}, indent=2)


# ---------------------------------------------------------------------------
# ToolDispatcher.dispatch
# ---------------------------------------------------------------------------


class TestDispatch:
    @pytest.fixture
    def recorder(self):
        return RecordingProvider(
            "rec", ToolResult.from_text("recorded"), tool_names=("record",),
        )

    @pytest.fixture
    def dispatcher(self, recorder):
        return ToolDispatcher(ProviderRegistry([recorder]))

    @pytest.mark.asyncio
    async def test_success(self, dispatcher, recorder):
        tools = dispatcher.registry.list_tools()
        outcome = await dispatcher.dispatch(_call("record", '{"x": 1}'), tools)

        assert outcome.output == "recorded"
        assert outcome.is_error is False
        assert recorder.calls == [("record", {"x": 1})]

    @pytest.mark.asyncio
    async def test_error_result_flag_passed_through(self):
        provider = RecordingProvider(
            "rec", ToolResult.from_text("denied", is_error=True),
        )
        dispatcher = ToolDispatcher(ProviderRegistry([provider]))

        outcome = await dispatcher.dispatch(
            _call("record"), dispatcher.registry.list_tools(),
        )

        assert outcome.output == "denied"
        assert outcome.is_error is True

    @pytest.mark.asyncio
    async def test_tool_not_in_catalog(self, dispatcher, recorder):
        outcome = await dispatcher.dispatch(
            _call("nonexistent"), dispatcher.registry.list_tools(),
        )

        assert outcome.is_error is True
        assert outcome.output == "Error executing nonexistent: Tool 'nonexistent' not found"
        assert recorder.calls == []

    @pytest.mark.asyncio
    async def test_invalid_json_arguments(self, dispatcher, recorder):
        outcome = await dispatcher.dispatch(
            _call("record", "{invalid"), dispatcher.registry.list_tools(),
        )

        assert outcome.is_error is True
        assert outcome.output.startswith("Error executing record: Invalid tool arguments")
        assert recorder.calls == []

    @pytest.mark.asyncio
    async def test_non_object_arguments(self, dispatcher):
        outcome = await dispatcher.dispatch(
            _call("record", "[1, 2]"), dispatcher.registry.list_tools(),
        )

        assert outcome.is_error is True
        assert "expected an object" in outcome.output

    @pytest.mark.asyncio
    async def test_provider_exception_becomes_error_outcome(self, registry):
        dispatcher = ToolDispatcher(registry)
        outcome = await dispatcher.dispatch(
            _call("explode"), registry.list_tools(),
        )

        assert outcome.is_error is True
        assert outcome.output == "Error executing explode: boom"

    @pytest.mark.asyncio
    async def test_provider_disconnected_after_catalog_snapshot(self, dispatcher):
        tools = dispatcher.registry.list_tools()
        dispatcher.registry.remove("rec")

        outcome = await dispatcher.dispatch(_call("record"), tools)

        assert outcome.is_error is True
        assert "Provider 'rec' not found" in outcome.output

    @pytest.mark.asyncio
    async def test_timeout_does_not_hang(self):
        hanging = HangingProvider()
        dispatcher = ToolDispatcher(ProviderRegistry([hanging]), timeout=0.05)

        outcome = await dispatcher.dispatch(
            _call("hang"), dispatcher.registry.list_tools(),
        )

        assert outcome.is_error is True
        assert outcome.output == "Error executing hang: Tool execution timeout after 50ms"
        assert hanging.started == 1

    @pytest.mark.asyncio
    async def test_timed_out_call_held_until_finished(self):
        dispatcher = ToolDispatcher(ProviderRegistry([HangingProvider()]), timeout=0.05)

        await dispatcher.dispatch(_call("hang"), dispatcher.registry.list_tools())

        assert len(dispatcher._abandoned) == 1
        task = next(iter(dispatcher._abandoned))
        assert not task.done()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)
        assert dispatcher._abandoned == set()

    @pytest.mark.asyncio
    async def test_unreadable_result_becomes_error_outcome(self):
        circular = {}
        circular["self"] = circular
        provider = RecordingProvider(
            "rec", ToolResult(content=[ToolContent(type="json", data=circular)]),
        )
        dispatcher = ToolDispatcher(ProviderRegistry([provider]))

        outcome = await dispatcher.dispatch(
            _call("record"), dispatcher.registry.list_tools(),
        )

        assert outcome.is_error is True
        assert outcome.output.startswith(
            "Error executing record: Unreadable tool result"
        )

    @pytest.mark.asyncio
    async def test_malformed_provider_return_becomes_error_outcome(self):
        provider = RecordingProvider("rec", None)
        dispatcher = ToolDispatcher(ProviderRegistry([provider]))

        outcome = await dispatcher.dispatch(
            _call("record"), dispatcher.registry.list_tools(),
        )

        assert outcome.is_error is True
        assert "Unreadable tool result" in outcome.output

    def test_default_timeout_is_thirty_seconds(self, dispatcher):
        assert dispatcher.timeout == 30.0
