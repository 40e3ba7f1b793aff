"""In-process tools: wrap Python callables and serve them as a provider.

Example::

    @tool
    def add(a: int, b: int):
        \"\"\"Add two numbers.

        Args:
            a: First operand.
            b: Second operand.
        \"\"\"
        return a + b

    registry = ProviderRegistry([FunctionToolProvider("math", [add])])
"""

from __future__ import annotations

import inspect
import json
import logging
import re
from typing import Any, Callable

from conductor.errors import ToolProviderError
from conductor.registry import ToolContent, ToolDescriptor, ToolProvider, ToolResult

logger = logging.getLogger(__name__)

_JSON_TYPES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    tuple: "array",
    set: "array",
    dict: "object",
}

_GOOGLE_SECTION = re.compile(r"^\s*(Args|Arguments|Parameters):\s*$")
_GOOGLE_PARAM = re.compile(r"^(\s*)(\w+)\s*(?:\([^)]*\))?\s*:\s*(.*)$")
_REST_PARAM = re.compile(r"^\s*:param\s+(?:\w+\s+)?(\w+)\s*:\s*(.*)$")


def _parse_param_descriptions(func: Callable) -> dict[str, str]:
    """Extract per-parameter descriptions from a Google or reST docstring."""
    doc = inspect.getdoc(func)
    if not doc:
        return {}

    lines = doc.splitlines()
    descriptions: dict[str, str] = {}

    rest = [m for m in (_REST_PARAM.match(line) for line in lines) if m]
    if rest:
        return {m.group(1): m.group(2).strip() for m in rest}

    in_section = False
    param_indent = None
    current = None
    for line in lines:
        if _GOOGLE_SECTION.match(line):
            in_section = True
            continue
        if not in_section:
            continue
        if not line.strip():
            continue
        indent = len(line) - len(line.lstrip())
        if param_indent is not None and indent < param_indent:
            break
        match = _GOOGLE_PARAM.match(line)
        if match and (param_indent is None or indent == param_indent):
            param_indent = indent
            current = match.group(2)
            descriptions[current] = match.group(3).strip()
        elif current is not None:
            descriptions[current] += "\n" + line.strip()
    return descriptions


def _build_parameters_schema(func: Callable) -> tuple[dict, list[str]]:
    """Derive a JSON schema for *func*'s parameters.

    Unannotated or unknown annotations map to ``string``.
    """
    signature = inspect.signature(func)
    descriptions = _parse_param_descriptions(func)
    properties = {}
    required = []
    for name, param in signature.parameters.items():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        annotation = param.annotation
        origin = getattr(annotation, "__origin__", annotation)
        properties[name] = {
            "type": _JSON_TYPES.get(origin, "string"),
            "description": descriptions.get(name, ""),
        }
        if param.default is inspect.Parameter.empty:
            required.append(name)
    schema = {"type": "object", "properties": properties, "required": required}
    return schema, required


def _summary(func: Callable) -> str:
    doc = inspect.getdoc(func)
    if not doc:
        return ""
    return doc.split("\n\n", 1)[0].strip()


class Tool:
    """A Python callable exposed to the model as a tool."""

    def __init__(
        self,
        func: Callable,
        name: str | None = None,
        description: str | None = None,
    ):
        self.func = func
        self.name = name or func.__name__
        self.description = description if description is not None else _summary(func)
        self.parameters_schema, _ = _build_parameters_schema(func)

    def descriptor(self, provider_id: str) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.parameters_schema,
            provider_id=provider_id,
        )

    async def __call__(self, **kwargs) -> Any:
        result = self.func(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r})"


def tool(
    func: Callable | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
):
    """Decorate a function as a :class:`Tool`.

    Usable bare (``@tool``) or with overrides
    (``@tool(name="x", description="...")``).
    """
    if func is not None:
        return Tool(func)

    def wrap(f: Callable) -> Tool:
        return Tool(f, name=name, description=description)
    return wrap


def _to_result(output: Any) -> ToolResult:
    if isinstance(output, ToolResult):
        return output
    if isinstance(output, str):
        return ToolResult.from_text(output)
    if output is None:
        return ToolResult()
    try:
        json.dumps(output)
    except TypeError:
        return ToolResult.from_text(str(output))
    return ToolResult(content=[ToolContent(type="json", data=output)])


class FunctionToolProvider(ToolProvider):
    """Serves :class:`Tool` objects from the current process.

    Exceptions raised by a tool propagate to the caller; they are not
    folded into an error result here.
    """

    def __init__(self, provider_id: str, tools: list[Tool]):
        super().__init__(provider_id)
        self._tools = {t.name: t for t in tools}

    def list_tools(self) -> list[ToolDescriptor]:
        return [t.descriptor(self.provider_id) for t in self._tools.values()]

    async def call_tool(self, name: str, arguments: dict) -> ToolResult:
        tool_obj = self._tools.get(name)
        if tool_obj is None:
            raise ToolProviderError(
                f"Tool '{name}' not found on provider '{self.provider_id}'"
            )
        logger.debug(f"{self.provider_id}: calling {name} with {arguments}")
        return _to_result(await tool_obj(**arguments))
