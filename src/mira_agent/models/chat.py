"""Conversation and turn models for the agent loop."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from mira_agent.models.action import Action
from mira_agent.models.plan import Plan


class AgentState(str, Enum):
    """Advisory agent state surfaced to the frontend after a turn."""

    IDLE = "IDLE"
    PLANNING = "PLANNING"
    EXECUTING = "EXECUTING"
    OBSERVING = "OBSERVING"
    DONE = "DONE"
    RECOVERING = "RECOVERING"


class ToolCall(BaseModel):
    """A tool invocation requested by the model.

    Attributes:
        id: Call identifier echoed back in the tool result message.
        name: Tool name.
        arguments_json: Raw JSON-encoded arguments as sent by the model.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    arguments_json: str = ""

    def to_message_entry(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments_json},
        }


class ModelReply(BaseModel):
    """The assistant message returned by one model round-trip."""

    model_config = ConfigDict(frozen=True)

    content: str | None = None
    tool_calls: list[ToolCall] = []

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)


class TurnResult(BaseModel):
    """Everything a completed turn reports back to the caller.

    Attributes:
        final_text: The assistant's answer (or the fallback text).
        state: Advisory agent state label at the end of the turn.
        plan: The plan stored during this turn, if any.
        logs: Tool log lines appended during this turn.
        actions: Frontend actions queued during this turn.
        iterations: Number of model round-trips performed.
    """

    model_config = ConfigDict(frozen=True)

    final_text: str
    state: AgentState
    plan: Plan | None = None
    logs: list[str] = []
    actions: list[Action] = []
    iterations: int = 0
