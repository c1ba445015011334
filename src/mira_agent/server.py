"""HTTP surface for the chat agent and remote browser control.

Browser endpoints always answer 200 with ``ok: true|false`` for expected
failures so the frontend can fall back to an embedded view. Only request
validation (400) and model API failures (500) surface as HTTP errors.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from mira_agent.agents.loop import AgentLoop
from mira_agent.config import Settings
from mira_agent.core.browser import BrowserSessionManager
from mira_agent.core.llm import ModelClient, OpenAIChatClient, UpstreamModelError
from mira_agent.core.logging import ErrorIds, logError
from mira_agent.core.sessions import SessionRegistry
from mira_agent.models.chat import TurnResult
from mira_agent.models.result import BrowserResult
from mira_agent.tools.executor import ToolExecutor


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1)


class ChatRequest(_Body):
    user_text: str = Field(alias="userText", min_length=1)


class SessionRequest(_Body):
    pass


class GotoRequest(_Body):
    url: str = Field(min_length=1)


class ClickRequest(_Body):
    x: float
    y: float


class TypeRequest(_Body):
    text: str


class KeyRequest(_Body):
    key: str = Field(min_length=1)


@dataclass
class AppComponents:
    """The long-lived objects one server process owns."""

    settings: Settings
    registry: SessionRegistry
    browser: BrowserSessionManager
    executor: ToolExecutor
    agent: AgentLoop


def build_components(settings: Settings, model: ModelClient | None = None) -> AppComponents:
    """Wire registry, browser manager, tool executor and agent loop together.

    Args:
        settings: Backend settings.
        model: Model client override. Defaults to the OpenAI-compatible client.
    """
    registry = SessionRegistry(
        max_history=settings.max_history_messages,
        idle_ttl=settings.session_idle_ttl,
    )
    browser = BrowserSessionManager(
        registry,
        disabled=settings.browser_disabled,
        ws_endpoint=settings.browser_ws_endpoint,
        executable_path=settings.browser_executable_path,
    )
    executor = ToolExecutor()
    agent = AgentLoop(
        registry,
        model or OpenAIChatClient.from_settings(settings),
        executor,
        max_iterations=settings.max_iterations,
    )
    return AppComponents(settings, registry, browser, executor, agent)


def turn_payload(result: TurnResult) -> dict[str, Any]:
    return {
        "assistantText": result.final_text,
        "agent": {
            "state": result.state.value,
            "plan": result.plan.model_dump() if result.plan is not None else None,
            "logs": result.logs,
        },
        "actions": [action.model_dump() for action in result.actions],
    }


async def _sweep_idle_sessions(components: AppComponents) -> None:
    while True:
        await asyncio.sleep(components.settings.sweep_interval)
        evicted = components.registry.sweep()
        if evicted:
            await components.browser.release(evicted)


def create_app(components: AppComponents) -> FastAPI:
    """Create the FastAPI application around prepared components."""

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(_sweep_idle_sessions(components))
        try:
            yield
        finally:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
            await components.browser.shutdown()
            await components.executor.aclose()

    app = FastAPI(title="MIRA agent backend", lifespan=lifespan)
    app.state.components = components
    app.add_middleware(
        CORSMiddleware,
        allow_origins=components.settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        missing = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
        message = f"Missing or invalid: {', '.join(missing)}" if missing else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    async def _browser_call(name: str, call: Any) -> dict[str, Any]:
        try:
            result: BrowserResult = await call
        except Exception as e:
            logError(ErrorIds.UNEXPECTED_ERROR, f"browser/{name} failed: {e}", exc_info=True)
            return {"ok": False, "error": str(e) or f"Browser {name} failed"}
        return result.to_payload()

    @app.get("/", response_class=PlainTextResponse)
    async def health() -> str:
        return "MIRA backend OK"

    @app.post("/api/chat")
    async def chat(body: ChatRequest) -> Any:
        try:
            result = await components.agent.run_turn(body.session_id, body.user_text)
        except UpstreamModelError:
            return JSONResponse(status_code=500, content={"error": "Server error"})
        except Exception as e:
            logError(ErrorIds.UNEXPECTED_ERROR, f"/api/chat failed: {e}", exc_info=True)
            return JSONResponse(status_code=500, content={"error": "Server error"})
        return turn_payload(result)

    @app.post("/api/browser/start")
    async def browser_start(body: SessionRequest) -> dict[str, Any]:
        return await _browser_call("start", components.browser.start(body.session_id))

    @app.post("/api/browser/goto")
    async def browser_goto(body: GotoRequest) -> dict[str, Any]:
        return await _browser_call("goto", components.browser.goto(body.session_id, body.url))

    @app.get("/api/browser/screenshot")
    async def browser_screenshot(
        session_id: str = Query(alias="sessionId", min_length=1),
    ) -> dict[str, Any]:
        return await _browser_call("screenshot", components.browser.screenshot(session_id))

    @app.post("/api/browser/click")
    async def browser_click(body: ClickRequest) -> dict[str, Any]:
        return await _browser_call("click", components.browser.click(body.session_id, body.x, body.y))

    @app.post("/api/browser/type")
    async def browser_type(body: TypeRequest) -> dict[str, Any]:
        return await _browser_call("type", components.browser.type_text(body.session_id, body.text))

    @app.post("/api/browser/key")
    async def browser_key(body: KeyRequest) -> dict[str, Any]:
        return await _browser_call("key", components.browser.key(body.session_id, body.key))

    @app.post("/api/browser/stop")
    async def browser_stop(body: SessionRequest) -> Any:
        try:
            result = await components.browser.stop(body.session_id)
        except Exception as e:
            logError(ErrorIds.BROWSER_CLOSE_FAILED, f"browser/stop failed: {e}", exc_info=True)
            return JSONResponse(status_code=500, content={"error": "Error stopping browser"})
        return result.to_payload()

    return app
