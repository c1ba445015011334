"""MIRA agent data models."""

from mira_agent.models.action import Action, ActionType, open_url_action
from mira_agent.models.chat import AgentState, ModelReply, ToolCall, TurnResult
from mira_agent.models.plan import MAX_PLAN_STEPS, MIN_PLAN_STEPS, Plan
from mira_agent.models.result import (
    BrowserResult,
    FailureResult,
    SuccessResult,
    Viewport,
    failure_result,
    success_result,
)

__all__ = [
    "Action",
    "ActionType",
    "AgentState",
    "BrowserResult",
    "FailureResult",
    "MAX_PLAN_STEPS",
    "MIN_PLAN_STEPS",
    "ModelReply",
    "Plan",
    "SuccessResult",
    "ToolCall",
    "TurnResult",
    "Viewport",
    "failure_result",
    "open_url_action",
    "success_result",
]
