"""Tool names and the function-tool schemas offered to the model."""

from enum import Enum
from typing import Any

from mira_agent.models.plan import MAX_PLAN_STEPS, MIN_PLAN_STEPS
from mira_agent.tools.web_fetch import DEFAULT_MAX_CHARS


class ToolName(str, Enum):
    """The closed set of server-executed tools."""

    SET_PLAN = "set_plan"
    WEB_FETCH = "web_fetch"
    OPEN_URL = "open_url"


def _function_tool(name: ToolName, description: str, parameters: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name.value,
            "description": description,
            "parameters": parameters,
        },
    }


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    _function_tool(
        ToolName.SET_PLAN,
        "Store a short plan of 2 to 6 steps for a user task. "
        "Use it whenever the user asks for an action or task.",
        {
            "type": "object",
            "properties": {
                "goal": {"type": "string", "description": "Goal in one sentence."},
                "steps": {
                    "type": "array",
                    "description": f"Ordered steps ({MIN_PLAN_STEPS} to {MAX_PLAN_STEPS}).",
                    "items": {"type": "string"},
                    "minItems": MIN_PLAN_STEPS,
                    "maxItems": MAX_PLAN_STEPS,
                },
                "needs_user": {
                    "type": "array",
                    "description": "Things you need from the user, if any.",
                    "items": {"type": "string"},
                },
                "confirm_required": {
                    "type": "boolean",
                    "description": "True if explicit confirmation is required (send/pay/delete/publish/login).",
                },
            },
            "required": ["goal", "steps", "confirm_required"],
        },
    ),
    _function_tool(
        ToolName.WEB_FETCH,
        "Download a public URL and return its extracted text. "
        "Use it when you need to read a page to answer or verify information.",
        {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "http(s) URL to fetch."},
                "max_chars": {
                    "type": "integer",
                    "description": "Maximum characters of text to return.",
                    "default": DEFAULT_MAX_CHARS,
                },
            },
            "required": ["url"],
        },
    ),
    _function_tool(
        ToolName.OPEN_URL,
        "Ask the frontend to open a URL in the task window (copilot mode). "
        "Use it when the user says 'open X' or you need to show a website.",
        {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "http(s) URL to open."},
            },
            "required": ["url"],
        },
    ),
]
