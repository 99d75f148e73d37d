# models.py
# Data contracts for the plan runner.
# No business logic lives here: pure schema and validation.

from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field


class Step(BaseModel):
    """A single tool invocation in a plan."""

    tool: str = Field(..., description="Tool name, possibly carrying a namespace prefix.")
    args: dict[str, Any] | None = Field(default=None, description="Tool arguments.")


# ---------------------------------------------------------------------------
# Tool schemas
# ---------------------------------------------------------------------------


class ToolParameters(BaseModel):
    type: Literal["object"] = "object"
    properties: dict[str, dict[str, Any]] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)


class ToolDefinition(BaseModel):
    """JSON-schema style description of a tool, the only source of legal argument keys."""

    name: str
    description: str
    parameters: ToolParameters = Field(default_factory=ToolParameters)

    def to_function(self) -> dict[str, Any]:
        """Wrap the definition in the function-calling envelope models expect."""
        return {"type": "function", "function": self.model_dump(exclude_none=True)}


# Handlers may be coroutine functions or plain callables.
ToolHandler = Callable[[dict[str, Any]], Any]


class ToolEntry(BaseModel):
    """A registered tool: its schema plus the callable that runs it."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    definition: ToolDefinition
    handler: ToolHandler
    return_raw: bool = Field(default=False, description="Skip the assistant post-process hook.")


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class ExecutionRecord(BaseModel):
    """Log entry produced after each executed step."""

    index: int
    tool: str
    args: dict[str, Any]
    result: Any = None


class ExecutionReport(BaseModel):
    records: list[ExecutionRecord] = Field(default_factory=list)
    output: Any = None

    @property
    def history(self) -> list[Any]:
        return [record.result for record in self.records]


# ---------------------------------------------------------------------------
# Chat wire format
# ---------------------------------------------------------------------------


class ChatMessage(BaseModel):
    role: str
    content: str = ""


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(..., min_length=1)


class ChatChoice(BaseModel):
    message: ChatMessage


class ChatResponse(BaseModel):
    choices: list[ChatChoice]

    @classmethod
    def from_text(cls, content: str) -> "ChatResponse":
        return cls(choices=[ChatChoice(message=ChatMessage(role="assistant", content=content))])


class RouterDecision(BaseModel):
    """Which assistant should handle a request, as chosen by the model."""

    model_config = ConfigDict(populate_by_name=True)

    assistant_name: str = Field(..., alias="assistantName")
    reason: str | None = None
