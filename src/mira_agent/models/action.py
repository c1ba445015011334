"""Frontend action models.

Actions are UI-level effects the agent asks the calling client to perform
after a turn completes (e.g. opening a URL in the task window).
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ActionType(str, Enum):
    """Kinds of actions a turn can emit for the frontend."""

    OPEN_URL = "open_url"


class Action(BaseModel):
    """A queued frontend action.

    Attributes:
        type: The action kind.
        url: Target URL for URL-based actions.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    type: ActionType
    url: str


def open_url_action(url: str) -> Action:
    """Create an open_url action for the given URL."""
    return Action(type=ActionType.OPEN_URL, url=url)
