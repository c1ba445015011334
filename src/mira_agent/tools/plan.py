"""set_plan tool: store the turn's plan and summarise it in the tool log."""

from typing import Any

from mira_agent.core.sessions import SessionRecord
from mira_agent.models.plan import Plan


async def set_plan(args: Plan, record: SessionRecord) -> dict[str, Any]:
    """Store a plan for the current turn, replacing any earlier one.

    Args:
        args: The validated plan (2 to 6 steps).
        record: The session the turn belongs to.

    Returns:
        ``{"ok": True, "stored": True}``.
    """
    record.set_plan(args)
    for line in args.summary_lines():
        record.log(line)
    return {"ok": True, "stored": True}
