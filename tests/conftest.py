"""Shared test fixtures for mira_agent tests."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from mira_agent.core.llm import UpstreamModelError
from mira_agent.core.sessions import SessionRecord, SessionRegistry
from mira_agent.models.chat import ModelReply, ToolCall


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedModel:
    """ModelClient that replays a fixed list of replies (or exceptions).

    Once the script runs out, the last entry is repeated.
    """

    def __init__(self, *replies: ModelReply | Exception) -> None:
        self._replies = list(replies)
        self.calls: list[list[dict[str, Any]]] = []
        self.tools_seen: list[list[dict[str, Any]]] = []

    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
    ) -> ModelReply:
        self.calls.append([dict(m) for m in messages])
        self.tools_seen.append(tools)
        index = min(len(self.calls) - 1, len(self._replies) - 1)
        reply = self._replies[index]
        if isinstance(reply, Exception):
            raise reply
        return reply


def tool_reply(*calls: tuple[str, str], content: str | None = None) -> ModelReply:
    """Build a ModelReply requesting the given (name, arguments_json) tool calls."""
    return ModelReply(
        content=content,
        tool_calls=[
            ToolCall(id=f"call-{i}", name=name, arguments_json=args)
            for i, (name, args) in enumerate(calls)
        ],
    )


def text_reply(content: str) -> ModelReply:
    return ModelReply(content=content)


class FakePage:
    """Stand-in for a Playwright Page whose screenshot reflects the current URL."""

    def __init__(self) -> None:
        self.url = "about:blank"
        self.goto = AsyncMock(side_effect=self._goto)
        self.screenshot = AsyncMock(side_effect=self._screenshot)
        self.mouse = MagicMock()
        self.mouse.click = AsyncMock()
        self.keyboard = MagicMock()
        self.keyboard.type = AsyncMock()
        self.keyboard.press = AsyncMock()
        self.set_default_navigation_timeout = MagicMock()
        self.set_default_timeout = MagicMock()
        self.close = AsyncMock()

    def _goto(self, url: str, **kwargs: Any) -> None:
        self.url = url
        return None

    def _screenshot(self, **kwargs: Any) -> bytes:
        return f"PNG:{self.url}".encode()


class FakePlaywright:
    """Records launches and hands out FakePages instead of real browsers."""

    def __init__(self) -> None:
        self.pages: list[FakePage] = []
        self.browsers: list[MagicMock] = []
        self.contexts: list[MagicMock] = []
        self.starts = 0
        self.driver = MagicMock()
        self.driver.chromium.launch = AsyncMock(side_effect=self._new_browser)
        self.driver.chromium.connect_over_cdp = AsyncMock(side_effect=self._new_browser)
        self.driver.stop = AsyncMock()

    def _new_browser(self, *args: Any, **kwargs: Any) -> MagicMock:
        context = MagicMock()
        context.new_page = AsyncMock(side_effect=self._new_page)
        context.close = AsyncMock()
        browser = MagicMock()
        browser.new_context = AsyncMock(return_value=context)
        browser.close = AsyncMock()
        self.contexts.append(context)
        self.browsers.append(browser)
        return browser

    def _new_page(self) -> FakePage:
        page = FakePage()
        self.pages.append(page)
        return page

    def factory(self) -> Any:
        harness = self

        class _Starter:
            async def start(self) -> MagicMock:
                harness.starts += 1
                return harness.driver

        return _Starter()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> SessionRegistry:
    return SessionRegistry(max_history=36, idle_ttl=1800.0, clock=clock)


@pytest.fixture
def record(registry: SessionRegistry) -> SessionRecord:
    return registry.get("session-1")


@pytest.fixture
def fake_playwright() -> FakePlaywright:
    return FakePlaywright()


@pytest.fixture
def upstream_error() -> UpstreamModelError:
    return UpstreamModelError("quota exceeded")
