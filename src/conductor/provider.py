import logging
import os
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from openai import APIConnectionError, APIStatusError, AsyncOpenAI, OpenAIError

from conductor.config import Settings
from conductor.errors import StreamError
from conductor.message import Message
from conductor.registry import ToolDescriptor
from conductor.streaming import StreamChunk, ToolCallFragment

logger = logging.getLogger(__name__)


class ModelProvider(ABC):
    """Streaming chat-completion client.

    Implementations must raise :class:`StreamError` when the endpoint
    is unreachable or misconfigured.
    """

    name: str = "unknown"
    model: str = ""

    @abstractmethod
    def stream(
        self,
        messages: list[Message],
        tools: list[ToolDescriptor],
    ) -> AsyncIterator[StreamChunk]:
        ...


class OpenAIProvider(ModelProvider):
    """Provider for OpenAI and any OpenAI-compatible endpoint.

    Point ``base_url`` at vLLM, Ollama, OpenRouter and the like.

    Args:
        model: Model name sent with every request.
        api_key: Falls back to ``OPENAI_API_KEY``, then to a dummy key
            so that local endpoints without auth work.
        base_url: Endpoint root, e.g. ``http://localhost:8000/v1``.
    """

    name = "openai"

    def __init__(
        self,
        model: str | None,
        api_key: str | None = None,
        base_url: str | None = None,
        max_retries: int = 2,
        timeout: float = 600.0,
    ):
        self.model = model or ""
        if not api_key:
            api_key = os.getenv("OPENAI_API_KEY") or "DUMMY"
        self.base_url = base_url.rstrip("/") if base_url else None
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            max_retries=max_retries,
            timeout=timeout,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIProvider":
        return cls(
            model=settings.llm_model,
            api_key=settings.llm_api_key,
            base_url=settings.llm_base_url,
        )

    @property
    def endpoint(self) -> str:
        return self.base_url or str(self.client.base_url)

    async def stream(
        self,
        messages: list[Message],
        tools: list[ToolDescriptor],
    ) -> AsyncIterator[StreamChunk]:
        if not self.model:
            raise StreamError("LLM not configured: no model name set")

        kwargs = {}
        if tools:
            kwargs["tools"] = [t.to_openai_tool() for t in tools]
            kwargs["tool_choice"] = "auto"

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[m.to_provider_dict() for m in messages],
                stream=True,
                **kwargs,
            )
            async for chunk in response:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                yield _to_stream_chunk(choice.delta, choice.finish_reason)
        except APIConnectionError as e:
            logger.error(f"Cannot reach LLM endpoint at {self.endpoint}: {e}")
            raise StreamError(
                f"Cannot reach LLM endpoint at {self.endpoint}: {e}"
            ) from e
        except APIStatusError as e:
            logger.error(f"LLM request failed ({e.status_code}): {e}")
            raise StreamError(
                f"LLM request failed ({e.status_code}): {e.message}"
            ) from e
        except OpenAIError as e:
            logger.error(f"LLM request failed: {e}")
            raise StreamError(f"LLM request failed: {e}") from e


def _to_stream_chunk(delta, finish_reason: str | None) -> StreamChunk:
    fragments = None
    if delta is not None and delta.tool_calls:
        fragments = []
        for tc in delta.tool_calls:
            function = tc.function
            fragments.append(ToolCallFragment(
                index=tc.index,
                call_id=tc.id,
                type=tc.type,
                name=function.name if function else None,
                arguments_delta=function.arguments if function else None,
            ))
    return StreamChunk(
        content_delta=delta.content if delta is not None else None,
        tool_call_fragments=fragments,
        finish_reason=finish_reason,
    )
