"""Remote browser session management.

This module owns the lifecycle of at most one headless Chromium page per
session id: launch (or attach to a remote browser over CDP), navigation,
input injection, screenshot capture and teardown. Every public operation
returns a BrowserResult instead of raising, so callers can degrade to a
non-interactive view when real browser control is unavailable.
"""

import asyncio
import base64
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    async_playwright,
)

from mira_agent.core.logging import ErrorIds, logError, logEvent, logForDebugging
from mira_agent.core.sessions import SessionRecord, SessionRegistry
from mira_agent.core.urls import UnsupportedUrlError, normalize_url
from mira_agent.models.result import BrowserResult, Viewport, failure_result, success_result

DEFAULT_VIEWPORT = Viewport(width=1280, height=720)

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124 Safari/537.36"
)

NAVIGATION_TIMEOUT_MS = 45_000
DEFAULT_TIMEOUT_MS = 30_000
CLICK_DELAY_MS = 10
TYPE_DELAY_MS = 12

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]

FALLBACK_HINT = "Use iframe mode, or configure BROWSER_WS / BROWSER_EXECUTABLE_PATH."


class BrowserDisabledError(Exception):
    """Raised when browser control is administratively turned off."""

    def __init__(self) -> None:
        super().__init__("Browser control is disabled (DISABLE_BROWSER=1)")


class BrowserOperationError(Exception):
    """Raised when launching, navigating or driving the browser fails."""


@dataclass
class BrowserSession:
    """A live browser page exclusively owned by one session id.

    Attributes:
        session_id: Owning session id.
        page: The Playwright page driven by this session.
        viewport: Page viewport size.
        browser: The launched or attached browser.
        context: The browser context holding the page.
        last_screenshot: PNG bytes of the most recent capture.
        last_url: Last URL navigated to via goto.
    """

    session_id: str
    page: Page
    viewport: Viewport
    browser: Browser | None = None
    context: BrowserContext | None = None
    last_screenshot: bytes = b""
    last_url: str = ""

    @property
    def screenshot_base64(self) -> str:
        return base64.b64encode(self.last_screenshot).decode("ascii")


PageOperation = Callable[[BrowserSession], Awaitable[None]]


class BrowserSessionManager:
    """Creates, drives and tears down per-session browser pages.

    Browser handles are stored on the session's SessionRecord and every
    operation runs under that record's ``browser_lock``.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        disabled: bool = False,
        ws_endpoint: str | None = None,
        executable_path: str | None = None,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        """Initialize the manager.

        Args:
            registry: The SessionRegistry holding per-session records.
            disabled: If True, every operation fails fast with a hint.
            ws_endpoint: Remote browser CDP endpoint to attach to instead of launching.
            executable_path: Explicit Chromium executable for local launches.
            playwright_factory: Returns an object whose ``start()`` yields a Playwright
                                driver. Injectable for tests.
        """
        self._registry = registry
        self._disabled = disabled
        self._ws_endpoint = ws_endpoint
        self._executable_path = executable_path
        self._playwright_factory = playwright_factory
        self._playwright: Playwright | None = None
        self._driver_lock = asyncio.Lock()

    @property
    def disabled(self) -> bool:
        return self._disabled

    async def _get_playwright(self) -> Playwright:
        async with self._driver_lock:
            if self._playwright is None:
                self._playwright = await self._playwright_factory().start()
            return self._playwright

    async def _launch(self, session_id: str) -> BrowserSession:
        """Launch or attach a browser and open a configured page."""
        playwright = await self._get_playwright()
        viewport = DEFAULT_VIEWPORT

        if self._ws_endpoint:
            browser = await playwright.chromium.connect_over_cdp(self._ws_endpoint)
            mode = "remote"
        else:
            browser = await playwright.chromium.launch(
                headless=True,
                executable_path=self._executable_path,
                args=LAUNCH_ARGS,
            )
            mode = "local"

        try:
            context = await browser.new_context(
                viewport=viewport.model_dump(),
                user_agent=DESKTOP_USER_AGENT,
            )
            page = await context.new_page()
        except Exception:
            await browser.close()
            raise

        page.set_default_navigation_timeout(NAVIGATION_TIMEOUT_MS)
        page.set_default_timeout(DEFAULT_TIMEOUT_MS)

        logEvent("browser_started", {"session_id": session_id, "mode": mode})
        return BrowserSession(
            session_id=session_id,
            page=page,
            viewport=viewport,
            browser=browser,
            context=context,
        )

    async def _get_or_create(self, record: SessionRecord) -> BrowserSession:
        """Return the record's browser session, creating it on first use.

        Must be called with ``record.browser_lock`` held.

        Raises:
            BrowserDisabledError: If browser control is disabled.
            BrowserOperationError: If the browser cannot be launched or attached.
        """
        if self._disabled:
            raise BrowserDisabledError()

        if record.browser is not None:
            return record.browser

        try:
            record.browser = await self._launch(record.session_id)
        except Exception as e:
            logError(
                ErrorIds.BROWSER_LAUNCH_FAILED,
                f"Failed to start browser: {e}",
                extra={"session_id": record.session_id},
            )
            raise BrowserOperationError(f"Failed to start browser: {e}") from e
        return record.browser

    async def _capture(self, session: BrowserSession) -> str:
        try:
            session.last_screenshot = await session.page.screenshot(type="png")
        except PlaywrightError as e:
            logError(
                ErrorIds.SCREENSHOT_CAPTURE_FAILED,
                f"Screenshot failed: {e}",
                extra={"session_id": session.session_id},
            )
            raise BrowserOperationError(f"Screenshot failed: {e}") from e
        return session.screenshot_base64

    async def _run(
        self,
        session_id: str,
        operation_name: str,
        operation: PageOperation | None = None,
        error_id: str = ErrorIds.BROWSER_INPUT_FAILED,
        include_viewport: bool = False,
    ) -> BrowserResult:
        """Run one operation against a session's page and recapture the screen.

        Args:
            session_id: Target session id.
            operation_name: Name used in logs and error messages.
            operation: Page mutation to perform before capturing. None for a plain capture.
            error_id: ErrorIds constant to log on operation failure.
            include_viewport: If True, the success result carries the viewport.

        Returns:
            SuccessResult with a fresh screenshot, or FailureResult.
        """
        record = self._registry.get(session_id)
        async with record.browser_lock:
            try:
                session = await self._get_or_create(record)
                if operation is not None:
                    try:
                        await operation(session)
                    except PlaywrightError as e:
                        logError(
                            error_id,
                            f"Browser {operation_name} failed: {e}",
                            extra={"session_id": session_id},
                        )
                        raise BrowserOperationError(str(e)) from e
                screenshot = await self._capture(session)
            except BrowserDisabledError as e:
                logError(ErrorIds.BROWSER_DISABLED, str(e), extra={"session_id": session_id})
                return failure_result(str(e), hint=FALLBACK_HINT)
            except BrowserOperationError as e:
                hint = FALLBACK_HINT if record.browser is None else None
                return failure_result(str(e), hint=hint)

        logForDebugging(f"Browser {operation_name} ok", extra={"session_id": session_id})
        viewport = session.viewport if include_viewport else None
        return success_result(screenshot_base64=screenshot, viewport=viewport)

    async def start(self, session_id: str) -> BrowserResult:
        """Ensure a browser exists for the session and return its viewport and screen."""
        return await self._run(session_id, "start", include_viewport=True)

    async def screenshot(self, session_id: str) -> BrowserResult:
        """Capture the current screen, creating the browser if needed."""
        return await self._run(session_id, "screenshot", error_id=ErrorIds.SCREENSHOT_CAPTURE_FAILED)

    async def goto(self, session_id: str, url: str) -> BrowserResult:
        """Navigate the session's page and wait for DOM content to be ready."""
        try:
            target = normalize_url(url)
        except UnsupportedUrlError as e:
            return failure_result(str(e))

        async def _goto(session: BrowserSession) -> None:
            await session.page.goto(target, wait_until="domcontentloaded")
            session.last_url = target

        return await self._run(session_id, "goto", _goto, error_id=ErrorIds.NAVIGATION_FAILED)

    async def click(self, session_id: str, x: float, y: float) -> BrowserResult:
        """Click at viewport coordinates."""

        async def _click(session: BrowserSession) -> None:
            await session.page.mouse.click(float(x), float(y), delay=CLICK_DELAY_MS)

        return await self._run(session_id, "click", _click)

    async def type_text(self, session_id: str, text: str) -> BrowserResult:
        """Type text into the focused element, one keystroke at a time."""

        async def _type(session: BrowserSession) -> None:
            await session.page.keyboard.type(str(text), delay=TYPE_DELAY_MS)

        return await self._run(session_id, "type", _type)

    async def key(self, session_id: str, key_name: str) -> BrowserResult:
        """Press a single named key or chord (e.g. "Enter", "Control+L")."""

        async def _press(session: BrowserSession) -> None:
            await session.page.keyboard.press(str(key_name))

        return await self._run(session_id, "key", _press)

    async def stop(self, session_id: str) -> BrowserResult:
        """Close the session's browser, if any. Never fails for a missing session."""
        record = self._registry.peek(session_id)
        if record is None:
            return success_result()
        async with record.browser_lock:
            await self._close(record)
        return success_result()

    async def release(self, records: list[SessionRecord]) -> None:
        """Close the browsers of records that were evicted from the registry."""
        for record in records:
            async with record.browser_lock:
                await self._close(record)

    async def shutdown(self) -> None:
        """Close every remaining browser and stop the Playwright driver."""
        await self.release(self._registry.drain())
        async with self._driver_lock:
            if self._playwright is not None:
                try:
                    await self._playwright.stop()
                except Exception as e:
                    logError(ErrorIds.BROWSER_CLOSE_FAILED, f"Failed to stop Playwright: {e}")
                self._playwright = None

    async def _close(self, record: SessionRecord) -> None:
        """Close page, context and browser best-effort and drop the handle."""
        session = record.browser
        if session is None:
            return
        record.browser = None

        for name, closable in (
            ("page", session.page),
            ("context", session.context),
            ("browser", session.browser),
        ):
            if closable is None:
                continue
            try:
                await closable.close()
            except Exception as e:
                logError(
                    ErrorIds.BROWSER_CLOSE_FAILED,
                    f"Failed to close {name}: {e}",
                    extra={"session_id": record.session_id},
                )

        logEvent("browser_stopped", {"session_id": record.session_id})
