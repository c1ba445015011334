"""Server-executed tools available to the agent loop."""

from mira_agent.tools.definitions import TOOL_DEFINITIONS, ToolName
from mira_agent.tools.executor import ToolArgumentError, ToolExecutor
from mira_agent.tools.web_fetch import strip_html_to_text

__all__ = [
    "TOOL_DEFINITIONS",
    "ToolArgumentError",
    "ToolExecutor",
    "ToolName",
    "strip_html_to_text",
]
