"""Optional OpenTelemetry instrumentation for conductor.

Call ``conductor.instrument()`` once at startup to enable tracing.
Requires ``opentelemetry-api`` to be installed; the library works
identically without it.
"""

import importlib.util
import logging
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

_tracer = None


def instrument(*, tracer_name: str = "conductor") -> None:
    """Enable OpenTelemetry tracing for all conductor runs.

    Call once at startup, after configuring your TracerProvider.
    Requires ``opentelemetry-api``: ``pip install conductor[otel]``

    Example::

        from opentelemetry import trace
        from opentelemetry.sdk.trace import TracerProvider

        trace.set_tracer_provider(TracerProvider())

        import conductor
        conductor.instrument()

    Args:
        tracer_name: Name passed to ``trace.get_tracer()``.

    Raises:
        ImportError: If ``opentelemetry-api`` is not installed.
    """
    global _tracer
    if importlib.util.find_spec("opentelemetry.trace") is None:
        raise ImportError(
            "opentelemetry-api is required for instrumentation. "
            "Install it with: pip install conductor[otel]"
        )
    from opentelemetry import trace
    _tracer = trace.get_tracer(tracer_name)
    if isinstance(_tracer, trace.NoOpTracer):
        logger.info(
            "No TracerProvider configured; spans will be "
            "discarded. Set up a TracerProvider to export "
            "traces."
        )
    else:
        logger.info("Conductor instrumentation enabled")


def uninstrument() -> None:
    """Disable OpenTelemetry tracing."""
    global _tracer
    _tracer = None


@asynccontextmanager
async def run_span(model: str):
    """Wrap one orchestration run in an ``invoke_agent`` span."""
    if _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(
        "invoke_agent conductor",
        attributes={
            "gen_ai.operation.name": "invoke_agent",
            "gen_ai.request.model": model,
        },
    ) as span:
        yield span


@asynccontextmanager
async def completion_span(system: str, model: str, turn: int):
    """Wrap one model turn in a ``chat`` span."""
    if _tracer is None:
        yield None
        return
    from opentelemetry.trace import SpanKind

    with _tracer.start_as_current_span(
        f"chat {model}",
        kind=SpanKind.CLIENT,
        attributes={
            "gen_ai.operation.name": "chat",
            "gen_ai.provider.name": system,
            "gen_ai.request.model": model,
            "conductor.turn": turn,
        },
    ) as span:
        yield span


@asynccontextmanager
async def tool_span(tool_name: str, call_id: str):
    """Wrap a tool dispatch in an ``execute_tool`` span."""
    if _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(
        f"execute_tool {tool_name}",
        attributes={
            "gen_ai.operation.name": "execute_tool",
            "gen_ai.tool.name": tool_name,
            "gen_ai.tool.call.id": call_id,
        },
    ) as span:
        yield span


def record_error(span, exception: BaseException | str) -> None:
    """Record an error and set ERROR status on a span.

    No-ops when *span* is ``None`` (tracing disabled).
    """
    if span is None:
        return
    from opentelemetry.trace import StatusCode

    span.set_status(StatusCode.ERROR, str(exception))
    if isinstance(exception, BaseException):
        span.record_exception(exception)
        span.set_attribute("error.type", type(exception).__qualname__)
    else:
        span.set_attribute("error.type", "tool_error")
