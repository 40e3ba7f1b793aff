import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum

from conductor.collector import ResponseCollector, TurnClassification, TurnOutcome
from conductor.config import Settings
from conductor.dispatcher import DEFAULT_TOOL_TIMEOUT, ToolDispatcher
from conductor.errors import MaxTurnsExceeded
from conductor.events import (
    DoneEvent,
    ErrorEvent,
    StreamEvent,
    ToolExecutionResultEvent,
    ToolExecutionStartEvent,
)
from conductor.instrumentation import completion_span, record_error, run_span, tool_span
from conductor.message import Message, ToolCallResultMessage
from conductor.provider import ModelProvider, OpenAIProvider
from conductor.registry import ToolDescriptor, ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 10


class RunState(Enum):
    RUNNING = "running"
    AWAITING_TOOLS = "awaiting_tools"
    DONE = "done"
    ABORTED = "aborted"


TERMINAL_STATES = (RunState.DONE, RunState.ABORTED)


def next_state(
    state: RunState,
    turn: int,
    max_turns: int,
    outcome: TurnOutcome | None = None,
) -> RunState:
    """Transition function of the orchestration loop.

    ``RUNNING`` needs the turn's *outcome*; a tool-invocation turn whose
    calls were all dropped as malformed ends the run like a normal one.
    Stream failures are handled by the caller, which moves straight to
    ``ABORTED``.
    """
    if state is RunState.RUNNING:
        if outcome is None:
            raise ValueError("RUNNING needs a turn outcome to transition")
        if (
            outcome.classification is TurnClassification.TOOL_INVOCATION
            and outcome.tool_calls
        ):
            return RunState.AWAITING_TOOLS
        return RunState.DONE
    if state is RunState.AWAITING_TOOLS:
        if turn + 1 <= max_turns:
            return RunState.RUNNING
        return RunState.ABORTED
    raise ValueError(f"{state.value} is a terminal state")


@dataclass
class RunResult:
    """The result of a single Runner.run() invocation."""

    transcript: list[Message] = field(default_factory=list)
    state: RunState = RunState.RUNNING
    turns: int = 0
    error: ErrorEvent | None = None

    @property
    def last_message(self) -> Message | None:
        return self.transcript[-1] if self.transcript else None


class Runner:
    """Executes the tool-calling loop over one transcript.

    Each run works on a copy of the transcript it is given and only
    ever appends to that copy.  Tool calls from one turn are dispatched
    one at a time, in the order the model emitted them.  A Runner holds
    no per-run state, so one instance can serve concurrent runs.

    ``run()`` drains ``iter()``.  ``iter()`` is the streaming entry point.

    Args:
        provider: Streaming model client.
        dispatcher: Executes tool calls against the tool registry.
        max_turns: Maximum number of model calls per run.
    """

    def __init__(
        self,
        provider: ModelProvider,
        dispatcher: ToolDispatcher,
        max_turns: int = DEFAULT_MAX_TURNS,
    ):
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.provider = provider
        self.dispatcher = dispatcher
        self.max_turns = max_turns

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        registry: ToolRegistry,
        provider: ModelProvider | None = None,
    ) -> "Runner":
        return cls(
            provider=provider or OpenAIProvider.from_settings(settings),
            dispatcher=ToolDispatcher(
                registry, timeout=settings.tool_timeout or DEFAULT_TOOL_TIMEOUT,
            ),
            max_turns=settings.max_turns,
        )

    async def run(
        self, transcript: list[Message], tools: list[ToolDescriptor],
    ) -> RunResult:
        """Run the loop to completion and return the final transcript."""
        result = RunResult()
        async for _ in self._drive(transcript, tools, result):
            pass
        return result

    async def iter(
        self,
        transcript: list[Message],
        tools: list[ToolDescriptor],
        result: RunResult | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Run the loop, yielding events as execution proceeds.

        The last event is always a :class:`DoneEvent`.  Pass *result* to
        get hold of the extended transcript once the stream is drained.
        """
        async for event in self._drive(transcript, tools, result or RunResult()):
            yield event

    async def _drive(
        self,
        transcript: list[Message],
        tools: list[ToolDescriptor],
        result: RunResult,
    ) -> AsyncIterator[StreamEvent]:
        history = list(transcript)
        result.transcript = history
        state = RunState.RUNNING
        turn = 1
        outcome: TurnOutcome | None = None
        error: ErrorEvent | None = None
        failure: Exception | None = None

        async with run_span(self.provider.model) as span:
            while state not in TERMINAL_STATES:
                if state is RunState.RUNNING:
                    logger.info(f"Turn {turn}/{self.max_turns}")
                    result.turns = turn
                    collector = ResponseCollector(self.provider)
                    try:
                        async with completion_span(
                            self.provider.name, self.provider.model, turn,
                        ) as cspan:
                            try:
                                async for event in collector.collect(history, tools):
                                    yield event
                            except Exception as e:
                                record_error(cspan, e)
                                raise
                    except Exception as e:
                        logger.exception(f"Error in turn {turn}: {e}")
                        failure = e
                        error = ErrorEvent(error=str(e), kind="stream_error")
                        state = RunState.ABORTED
                        continue

                    outcome = collector.outcome
                    history.append(outcome.assistant_message)
                    logger.info(
                        f"Turn {turn} finished: {outcome.classification.value}, "
                        f"tool calls: {len(outcome.tool_calls)}"
                    )
                    state = next_state(state, turn, self.max_turns, outcome)

                elif state is RunState.AWAITING_TOOLS:
                    for tc in outcome.tool_calls:
                        logger.info(f"Executing tool: {tc.name}")
                        yield ToolExecutionStartEvent(
                            tool_name=tc.name, tool_call_id=tc.id,
                        )
                        async with tool_span(tc.name, tc.id) as tspan:
                            tool_outcome = await self.dispatcher.dispatch(tc, tools)
                            if tool_outcome.is_error:
                                record_error(tspan, tool_outcome.output)
                        history.append(ToolCallResultMessage(
                            content=tool_outcome.output, tool_call_id=tc.id,
                        ))
                        yield ToolExecutionResultEvent(
                            tool_name=tc.name,
                            tool_call_id=tc.id,
                            is_error=tool_outcome.is_error,
                        )

                    state = next_state(state, turn, self.max_turns)
                    if state is RunState.RUNNING:
                        turn += 1
                    else:
                        exc = MaxTurnsExceeded(self.max_turns)
                        logger.warning(str(exc))
                        failure = exc
                        error = ErrorEvent(error=str(exc), kind="max_turns_exceeded")

            if failure is not None:
                record_error(span, failure)

        result.state = state
        result.error = error
        if error is not None:
            yield error
        else:
            logger.info("Conversation complete")
        yield DoneEvent()
