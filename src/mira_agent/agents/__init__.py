"""MIRA agent orchestration."""

from mira_agent.agents.loop import FALLBACK_TEXT, AgentLoop, is_task_like

__all__ = [
    "AgentLoop",
    "FALLBACK_TEXT",
    "is_task_like",
]
