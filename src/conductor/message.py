import time
from enum import Enum

from pydantic import BaseModel, Field, field_serializer, model_validator

from conductor.streaming import ToolCall


class MessageRole(Enum):
    SYSTEM = "system"
    ASSISTANT = "assistant"
    USER = "user"
    TOOL = "tool"


def _now_ms() -> int:
    return int(time.time() * 1000)


class Message(BaseModel):
    """One transcript entry.

    ``tool_calls`` is only valid on assistant messages and
    ``tool_call_id`` only on tool messages; a tool message must always
    name the call it answers.
    """

    role: MessageRole
    content: str = ""
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    timestamp: int = Field(default_factory=_now_ms)

    @field_serializer('role')
    def serialize_role(self, role: MessageRole, _info) -> str:
        return role.value

    @model_validator(mode="after")
    def check_role_fields(self):
        if self.tool_calls is not None:
            if self.role != MessageRole.ASSISTANT:
                raise ValueError("only assistant messages may carry tool_calls")
            ids = [tc.id for tc in self.tool_calls]
            if len(ids) != len(set(ids)):
                raise ValueError(f"duplicate tool call ids: {ids}")
        if self.role == MessageRole.TOOL and not self.tool_call_id:
            raise ValueError("tool messages must carry tool_call_id")
        if self.tool_call_id is not None and self.role != MessageRole.TOOL:
            raise ValueError("only tool messages may carry tool_call_id")
        return self

    def to_provider_dict(self) -> dict:
        """Render the OpenAI chat-completions wire shape."""
        data = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [tc.to_provider_dict() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        return data


class ToolCallRequestMessage(Message):
    role: MessageRole = MessageRole.ASSISTANT
    tool_calls: list[ToolCall]


class ToolCallResultMessage(Message):
    role: MessageRole = MessageRole.TOOL
    tool_call_id: str
