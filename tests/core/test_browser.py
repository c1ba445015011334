"""Tests for BrowserSessionManager."""

import asyncio
import base64
from unittest.mock import AsyncMock

import pytest
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from conftest import FakeClock, FakePlaywright
from mira_agent.core.browser import (
    CLICK_DELAY_MS,
    DEFAULT_TIMEOUT_MS,
    DESKTOP_USER_AGENT,
    FALLBACK_HINT,
    NAVIGATION_TIMEOUT_MS,
    TYPE_DELAY_MS,
    BrowserSessionManager,
)
from mira_agent.core.sessions import SessionRegistry
from mira_agent.models.result import FailureResult, SuccessResult


def _manager(registry: SessionRegistry, harness: FakePlaywright, **kwargs: object) -> BrowserSessionManager:
    return BrowserSessionManager(registry, playwright_factory=harness.factory, **kwargs)  # type: ignore[arg-type]


def _png(result: object) -> bytes:
    assert isinstance(result, SuccessResult)
    assert result.screenshot_base64 is not None
    return base64.b64decode(result.screenshot_base64)


class TestStart:
    @pytest.mark.asyncio
    async def test_start_launches_local_browser(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright, executable_path="/opt/chrome")

        result = await manager.start("s1")

        assert isinstance(result, SuccessResult)
        assert result.viewport is not None
        assert (result.viewport.width, result.viewport.height) == (1280, 720)
        assert _png(result) == b"PNG:about:blank"

        launch_kwargs = fake_playwright.driver.chromium.launch.call_args.kwargs
        assert launch_kwargs["headless"] is True
        assert launch_kwargs["executable_path"] == "/opt/chrome"
        assert "--no-sandbox" in launch_kwargs["args"]
        fake_playwright.driver.chromium.connect_over_cdp.assert_not_called()

        context_kwargs = fake_playwright.browsers[0].new_context.call_args.kwargs
        assert context_kwargs["user_agent"] == DESKTOP_USER_AGENT
        assert context_kwargs["viewport"] == {"width": 1280, "height": 720}

        page = fake_playwright.pages[0]
        page.set_default_navigation_timeout.assert_called_once_with(NAVIGATION_TIMEOUT_MS)
        page.set_default_timeout.assert_called_once_with(DEFAULT_TIMEOUT_MS)

    @pytest.mark.asyncio
    async def test_repeat_start_reuses_session(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright)

        await manager.start("s1")
        await manager.start("s1")

        assert fake_playwright.driver.chromium.launch.await_count == 1
        assert fake_playwright.starts == 1

    @pytest.mark.asyncio
    async def test_sessions_get_separate_pages(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright)

        await manager.start("a")
        await manager.goto("b", "https://example.com")

        assert len(fake_playwright.pages) == 2
        assert registry.get("a").browser.page is not registry.get("b").browser.page  # type: ignore[union-attr]
        assert fake_playwright.pages[0].url == "about:blank"

    @pytest.mark.asyncio
    async def test_remote_endpoint_attaches(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright, ws_endpoint="ws://browser:9222")

        result = await manager.start("s1")

        assert result.ok is True
        fake_playwright.driver.chromium.connect_over_cdp.assert_awaited_once_with("ws://browser:9222")
        fake_playwright.driver.chromium.launch.assert_not_called()

    @pytest.mark.asyncio
    async def test_disabled_fails_fast_with_hint(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright, disabled=True)

        result = await manager.start("s1")

        assert isinstance(result, FailureResult)
        assert "disabled" in result.error.lower()
        assert result.hint == FALLBACK_HINT
        assert fake_playwright.starts == 0
        fake_playwright.driver.chromium.launch.assert_not_called()

    @pytest.mark.asyncio
    async def test_launch_failure_is_soft(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        fake_playwright.driver.chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")
        manager = _manager(registry, fake_playwright)

        result = await manager.start("s1")

        assert isinstance(result, FailureResult)
        assert "Executable doesn't exist" in result.error
        assert result.hint
        assert registry.get("s1").browser is None


class TestOperations:
    @pytest.mark.asyncio
    async def test_goto_changes_screenshot(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright)
        start = await manager.start("s1")

        result = await manager.goto("s1", "https://example.com")

        assert result.ok is True
        assert _png(result) != _png(start)
        page = fake_playwright.pages[0]
        page.goto.assert_awaited_once_with("https://example.com", wait_until="domcontentloaded")
        assert registry.get("s1").browser.last_url == "https://example.com"  # type: ignore[union-attr]

    @pytest.mark.asyncio
    async def test_goto_normalises_bare_host(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright)

        await manager.goto("s1", "youtube.com")

        fake_playwright.pages[0].goto.assert_awaited_once_with("https://youtube.com", wait_until="domcontentloaded")

    @pytest.mark.asyncio
    async def test_goto_rejects_unsupported_scheme(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright)

        result = await manager.goto("s1", "javascript:alert(1)")

        assert result.ok is False
        assert fake_playwright.starts == 0

    @pytest.mark.asyncio
    async def test_goto_timeout_keeps_session(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright)
        await manager.start("s1")
        fake_playwright.pages[0].goto.side_effect = PlaywrightTimeoutError("Timeout 45000ms exceeded")

        result = await manager.goto("s1", "https://slow.example")

        assert isinstance(result, FailureResult)
        assert "Timeout" in result.error
        assert result.hint is None
        assert registry.get("s1").browser is not None

        retry = await manager.screenshot("s1")
        assert retry.ok is True
        assert fake_playwright.driver.chromium.launch.await_count == 1

    @pytest.mark.asyncio
    async def test_click_type_key(self, registry: SessionRegistry, fake_playwright: FakePlaywright) -> None:
        manager = _manager(registry, fake_playwright)

        assert (await manager.click("s1", 100, 200.5)).ok is True
        assert (await manager.type_text("s1", "hola")).ok is True
        assert (await manager.key("s1", "Control+L")).ok is True

        page = fake_playwright.pages[0]
        page.mouse.click.assert_awaited_once_with(100.0, 200.5, delay=CLICK_DELAY_MS)
        page.keyboard.type.assert_awaited_once_with("hola", delay=TYPE_DELAY_MS)
        page.keyboard.press.assert_awaited_once_with("Control+L")
        # one capture per operation
        assert page.screenshot.await_count == 3

    @pytest.mark.asyncio
    async def test_input_failure_is_soft(self, registry: SessionRegistry, fake_playwright: FakePlaywright) -> None:
        manager = _manager(registry, fake_playwright)
        await manager.start("s1")
        fake_playwright.pages[0].keyboard.press.side_effect = PlaywrightError("Unknown key: Foo")

        result = await manager.key("s1", "Foo")

        assert isinstance(result, FailureResult)
        assert "Unknown key" in result.error

    @pytest.mark.asyncio
    async def test_screenshot_twice_is_identical(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright)
        await manager.goto("s1", "https://example.com")

        first = await manager.screenshot("s1")
        second = await manager.screenshot("s1")

        assert _png(first) == _png(second)
        assert registry.get("s1").browser.last_screenshot == _png(second)  # type: ignore[union-attr]


class _Overlap:
    """Async side effect that records how many calls are in flight at once."""

    def __init__(self) -> None:
        self.active = 0
        self.max_active = 0

    async def __call__(self, *args: object, **kwargs: object) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1


class TestSerialization:
    @pytest.mark.asyncio
    async def test_same_session_operations_do_not_interleave(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright)
        await manager.start("s1")
        overlap = _Overlap()
        page = fake_playwright.pages[0]
        page.goto.side_effect = overlap.__call__
        page.mouse.click.side_effect = overlap.__call__

        results = await asyncio.gather(
            manager.goto("s1", "https://example.com"),
            manager.click("s1", 10, 20),
            manager.goto("s1", "https://example.org"),
        )

        assert all(r.ok for r in results)
        assert overlap.max_active == 1

    @pytest.mark.asyncio
    async def test_different_sessions_run_concurrently(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright)
        await manager.start("a")
        await manager.start("b")
        overlap = _Overlap()
        fake_playwright.pages[0].goto.side_effect = overlap.__call__
        fake_playwright.pages[1].mouse.click.side_effect = overlap.__call__

        await asyncio.gather(
            manager.goto("a", "https://example.com"),
            manager.click("b", 10, 20),
        )

        assert overlap.max_active == 2


class TestStop:
    @pytest.mark.asyncio
    async def test_stop_closes_and_evicts(self, registry: SessionRegistry, fake_playwright: FakePlaywright) -> None:
        manager = _manager(registry, fake_playwright)
        await manager.start("s1")

        result = await manager.stop("s1")

        assert result.ok is True
        assert registry.get("s1").browser is None
        fake_playwright.pages[0].close.assert_awaited_once()
        fake_playwright.contexts[0].close.assert_awaited_once()
        fake_playwright.browsers[0].close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_screenshot_after_stop_recreates(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright)
        await manager.start("s1")
        await manager.stop("s1")

        result = await manager.screenshot("s1")

        assert result.ok is True
        assert fake_playwright.driver.chromium.launch.await_count == 2
        assert len(fake_playwright.pages) == 2

    @pytest.mark.asyncio
    async def test_stop_swallows_close_errors(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright
    ) -> None:
        manager = _manager(registry, fake_playwright)
        await manager.start("s1")
        fake_playwright.pages[0].close = AsyncMock(side_effect=PlaywrightError("Target closed"))

        result = await manager.stop("s1")

        assert result.ok is True
        fake_playwright.browsers[0].close.assert_awaited_once()
        assert registry.get("s1").browser is None

    @pytest.mark.asyncio
    async def test_stop_unknown_session(self, registry: SessionRegistry, fake_playwright: FakePlaywright) -> None:
        manager = _manager(registry, fake_playwright)

        result = await manager.stop("never-started")

        assert result.ok is True
        assert "never-started" not in registry

    @pytest.mark.asyncio
    async def test_release_evicted_sessions(
        self, registry: SessionRegistry, fake_playwright: FakePlaywright, clock: FakeClock
    ) -> None:
        manager = _manager(registry, fake_playwright)
        await manager.start("idle")
        clock.advance(3600)

        await manager.release(registry.sweep())

        fake_playwright.browsers[0].close.assert_awaited_once()
        assert "idle" not in registry

    @pytest.mark.asyncio
    async def test_shutdown_stops_driver(self, registry: SessionRegistry, fake_playwright: FakePlaywright) -> None:
        manager = _manager(registry, fake_playwright)
        await manager.start("a")
        await manager.start("b")

        await manager.shutdown()

        assert all(b.close.await_count == 1 for b in fake_playwright.browsers)
        fake_playwright.driver.stop.assert_awaited_once()
        assert len(registry) == 0
