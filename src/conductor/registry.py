"""Tool catalog types and the registry that routes calls to providers.

A :class:`ToolProvider` is anything that exposes named tools: an
in-process :class:`~conductor.tools.FunctionToolProvider`, or a client
for an external tool server.  The :class:`ProviderRegistry` aggregates
several providers into one catalog and executes calls against the
provider that owns each tool.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from conductor.errors import ToolProviderError

logger = logging.getLogger(__name__)


class ToolDescriptor(BaseModel):
    """A tool as advertised to the model.

    Names are unique across the whole catalog.  ``provider_id`` names
    the provider that executes the tool.
    """

    name: str
    description: str = ""
    input_schema: dict = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )
    provider_id: str

    def to_openai_tool(self) -> dict:
        """Return an OpenAI-compatible function tool schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }


class ToolContent(BaseModel):
    """One item of a tool result: text, or an arbitrary structured payload."""

    type: str = "text"
    text: str | None = None
    data: Any = None


class ToolResult(BaseModel):
    content: list[ToolContent] = Field(default_factory=list)
    is_error: bool = False

    @classmethod
    def from_text(cls, text: str, is_error: bool = False) -> ToolResult:
        return cls(content=[ToolContent(type="text", text=text)], is_error=is_error)


class ToolProvider(ABC):
    """A source of callable tools."""

    def __init__(self, provider_id: str):
        self.provider_id = provider_id

    @property
    def connected(self) -> bool:
        return True

    @abstractmethod
    def list_tools(self) -> list[ToolDescriptor]:
        ...

    @abstractmethod
    async def call_tool(self, name: str, arguments: dict) -> ToolResult:
        """Execute *name* with *arguments*.

        Raises:
            ToolProviderError: If the tool is unknown to this provider.
        """
        ...


class ToolRegistry(ABC):
    """Catalog and dispatch contract consumed by the orchestrator."""

    @abstractmethod
    def list_tools(self) -> list[ToolDescriptor]:
        ...

    @abstractmethod
    async def execute(
        self, provider_id: str, tool_name: str, arguments: dict,
    ) -> ToolResult:
        ...


class ProviderRegistry(ToolRegistry):
    """Routes tool calls to a set of named providers.

    Providers are only added or removed at configuration time, so
    ``list_tools`` and ``execute`` may be called concurrently from
    independent runs.
    """

    def __init__(self, providers: list[ToolProvider] | None = None):
        self._providers: dict[str, ToolProvider] = {}
        for provider in providers or []:
            self.add(provider)

    def add(self, provider: ToolProvider) -> None:
        if provider.provider_id in self._providers:
            raise ValueError(
                f"Provider '{provider.provider_id}' is already registered"
            )
        self._providers[provider.provider_id] = provider
        logger.info(f"Registered tool provider: {provider.provider_id}")

    def remove(self, provider_id: str) -> None:
        self._providers.pop(provider_id, None)

    def get(self, provider_id: str) -> ToolProvider | None:
        return self._providers.get(provider_id)

    def list_tools(self) -> list[ToolDescriptor]:
        """Aggregate every connected provider's catalog.

        On a name collision the provider registered first keeps the name.
        """
        catalog: dict[str, ToolDescriptor] = {}
        for provider in self._providers.values():
            if not provider.connected:
                continue
            for descriptor in provider.list_tools():
                existing = catalog.get(descriptor.name)
                if existing is not None:
                    logger.warning(
                        f"Tool '{descriptor.name}' from {provider.provider_id} "
                        f"shadowed by {existing.provider_id}"
                    )
                    continue
                catalog[descriptor.name] = descriptor
        return list(catalog.values())

    async def execute(
        self, provider_id: str, tool_name: str, arguments: dict,
    ) -> ToolResult:
        provider = self._providers.get(provider_id)
        if provider is None:
            raise ToolProviderError(f"Provider '{provider_id}' not found")
        if not provider.connected:
            raise ToolProviderError(f"Provider '{provider_id}' is not connected")
        return await provider.call_tool(tool_name, arguments)
