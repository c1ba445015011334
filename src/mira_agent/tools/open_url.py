"""open_url tool: queue a URL for the frontend to open."""

from typing import Any

from pydantic import BaseModel

from mira_agent.core.sessions import SessionRecord
from mira_agent.core.urls import UnsupportedUrlError, normalize_url
from mira_agent.models.action import open_url_action


class OpenUrlArgs(BaseModel):
    url: str


async def open_url(args: OpenUrlArgs, record: SessionRecord) -> dict[str, Any]:
    """Enqueue an open_url action. Does not navigate anything itself."""
    try:
        url = normalize_url(args.url)
    except UnsupportedUrlError as e:
        record.log(f"Open URL rejected: {args.url} ({e})")
        return {"error": str(e)}

    record.log(f"Open URL requested: {url}")
    record.queue_action(open_url_action(url))
    return {"ok": True}
