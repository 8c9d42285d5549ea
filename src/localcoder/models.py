"""
Defines the core Pydantic data models for the application.

These models serve as the formal, validated data contract between the engine,
the tools, the model transport and the hosts. Message shapes follow the
conventions of the OpenAI chat-completions API so a transcript can be sent to
any OpenAI-compatible server without translation.
"""

import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# --- Constants ---
USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
SYSTEM_ROLE = "system"
TOOL_ROLE = "tool"
Role = Literal["user", "assistant", "system", "tool"]

EventType = Literal[
    "content",
    "enhancing_content",
    "tool_start",
    "tool_result",
    "tool_error",
    "approval_required",
    "phase_start",
    "phase_end",
    "done",
    "error",
]


# --- Tool calls ---
class ToolCall(BaseModel):
    """A finalized request from the model to run one tool."""

    model_config = ConfigDict(frozen=True)

    id: str
    function_name: str
    function_args: str = ""

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.function_name, "arguments": self.function_args},
        }


class ToolResult(BaseModel):
    """The text produced by running (or refusing to run) a tool call."""

    tool_call_id: str
    function_name: str
    content: str
    is_error: bool = False


# --- Messages ---
class SystemMessage(BaseModel):
    role: Literal["system"] = SYSTEM_ROLE
    content: str

    def to_api(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


class UserMessage(BaseModel):
    role: Literal["user"] = USER_ROLE
    content: str

    def to_api(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


class AssistantMessage(BaseModel):
    """An assistant reply, optionally issuing tool calls."""

    role: Literal["assistant"] = ASSISTANT_ROLE
    content: Optional[str] = None
    tool_calls: List[ToolCall] = Field(default_factory=list)

    def to_api(self) -> Dict[str, Any]:
        message: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [call.to_api() for call in self.tool_calls]
        return message


class ToolMessage(BaseModel):
    """The answer to one tool call of the preceding assistant message."""

    role: Literal["tool"] = TOOL_ROLE
    tool_call_id: str
    content: str

    @classmethod
    def from_result(cls, result: ToolResult) -> "ToolMessage":
        return cls(tool_call_id=result.tool_call_id, content=result.content)

    def to_api(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "tool_call_id": self.tool_call_id,
            "content": self.content,
        }


Message = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage],
    Field(discriminator="role"),
]


# --- Streaming ---
class ToolCallFragment(BaseModel):
    """A partial tool call delivered by one stream chunk."""

    index: int
    id: Optional[str] = None
    name: Optional[str] = None
    arguments: Optional[str] = None


class StreamChunk(BaseModel):
    """One transport-neutral piece of a streamed model response."""

    text: Optional[str] = None
    tool_call_fragments: List[ToolCallFragment] = Field(default_factory=list)


# --- Sessions ---
class Session(BaseModel):
    """A conversation owned by the host, keyed by an opaque identifier."""

    id: str
    dual_mode: bool = False
    history: List[Message] = Field(default_factory=list)
    executor_history: Optional[List[Message]] = None

    def reset(self) -> None:
        self.history = []
        self.executor_history = None


# --- Observer events ---
class TurnEvent(BaseModel):
    """A progress notification emitted while a turn runs."""

    type: EventType
    data: Dict[str, Any] = Field(default_factory=dict)

    def payload(self) -> Dict[str, Any]:
        """The flat ``{"type": ..., **data}`` shape pushed to clients."""
        return {"type": self.type, **self.data}

    def to_sse(self) -> str:
        return f"data: {json.dumps(self.payload())}\n\n"
