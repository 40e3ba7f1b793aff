"""Exception hierarchy for conductor.

Only :class:`StreamError` is fatal to a run.  :class:`ToolError`
subclasses are recovered by the dispatcher and written into the
transcript so the model can explain the failure on its next turn.
"""


class ConductorError(Exception):
    """Base class for all conductor errors."""


class StreamError(ConductorError):
    """The model endpoint is unreachable, misconfigured, or failed mid-stream."""


class MaxTurnsExceeded(ConductorError):
    """The run hit its turn ceiling while the model still wanted tools."""

    def __init__(self, max_turns: int):
        super().__init__(
            f"Maximum tool execution iterations reached ({max_turns}). "
            "Stopping for safety."
        )
        self.max_turns = max_turns


class ToolProviderError(ConductorError):
    """Raised by a tool registry when a provider or tool is unavailable."""


class ToolError(ConductorError):
    """Base for failures scoped to a single tool call."""


class ToolNotFound(ToolError):
    def __init__(self, tool_name: str):
        super().__init__(f"Tool '{tool_name}' not found")
        self.tool_name = tool_name


class InvalidArguments(ToolError):
    pass


class ToolTimeout(ToolError):
    def __init__(self, tool_name: str, timeout: float):
        super().__init__(
            f"Tool execution timeout after {int(timeout * 1000)}ms"
        )
        self.tool_name = tool_name
        self.timeout = timeout


class ToolExecutionFailure(ToolError):
    pass
