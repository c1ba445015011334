"""MIRA agent core components."""

from mira_agent.core.browser import (
    BrowserDisabledError,
    BrowserOperationError,
    BrowserSession,
    BrowserSessionManager,
)
from mira_agent.core.llm import ModelClient, OpenAIChatClient, UpstreamModelError
from mira_agent.core.sessions import SessionRecord, SessionRegistry
from mira_agent.core.urls import UnsupportedUrlError, normalize_url

__all__ = [
    "BrowserDisabledError",
    "BrowserOperationError",
    "BrowserSession",
    "BrowserSessionManager",
    "ModelClient",
    "OpenAIChatClient",
    "SessionRecord",
    "SessionRegistry",
    "UnsupportedUrlError",
    "UpstreamModelError",
    "normalize_url",
]
