"""Tool executor: dispatch model tool calls to typed handlers.

The handler table is keyed by the closed ToolName enum and built once at
construction. Each entry pairs a pydantic argument model with its handler,
so argument validation happens before any handler runs. Nothing raised by
a tool escapes ``execute``: failures come back as ``{"error": ...}``
observations the model can react to.
"""

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from mira_agent.core.logging import ErrorIds, logError, logEvent
from mira_agent.core.sessions import SessionRecord
from mira_agent.models.chat import ToolCall
from mira_agent.models.plan import Plan
from mira_agent.tools.definitions import TOOL_DEFINITIONS, ToolName
from mira_agent.tools.open_url import OpenUrlArgs, open_url
from mira_agent.tools.plan import set_plan
from mira_agent.tools.web_fetch import WebFetchArgs, create_http_client, web_fetch

ToolHandler = Callable[[Any, SessionRecord], Awaitable[dict[str, Any]]]


class ToolArgumentError(Exception):
    """Raised when a tool call's arguments are not valid JSON or fail validation."""


@dataclass(frozen=True)
class ToolSpec:
    args_model: type[BaseModel]
    handler: ToolHandler


class ToolExecutor:
    """Executes tool calls against a session's turn-scoped state."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        """Initialize the executor.

        Args:
            http_client: Client used by web_fetch. Created on demand if None.
        """
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._handlers: dict[ToolName, ToolSpec] = {
            ToolName.SET_PLAN: ToolSpec(Plan, set_plan),
            ToolName.WEB_FETCH: ToolSpec(WebFetchArgs, self._web_fetch),
            ToolName.OPEN_URL: ToolSpec(OpenUrlArgs, open_url),
        }

    @property
    def definitions(self) -> list[dict[str, Any]]:
        return TOOL_DEFINITIONS

    async def _web_fetch(self, args: WebFetchArgs, record: SessionRecord) -> dict[str, Any]:
        if self._http_client is None:
            self._http_client = create_http_client()
        return await web_fetch(args, record, self._http_client)

    async def aclose(self) -> None:
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    @staticmethod
    def parse_arguments(tool_spec: ToolSpec, arguments_json: str) -> BaseModel:
        """Decode and validate raw tool arguments.

        Raises:
            ToolArgumentError: If the JSON is malformed or fails validation.
        """
        try:
            raw = json.loads(arguments_json) if arguments_json.strip() else {}
        except json.JSONDecodeError as e:
            raise ToolArgumentError(f"arguments are not valid JSON: {e.msg}") from e
        if not isinstance(raw, dict):
            raise ToolArgumentError("arguments must be a JSON object")

        try:
            return tool_spec.args_model.model_validate(raw)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            raise ToolArgumentError(problems) from e

    async def execute(self, record: SessionRecord, call: ToolCall) -> dict[str, Any]:
        """Run one tool call.

        Args:
            record: The session whose turn issued the call.
            call: The tool call as returned by the model.

        Returns:
            The tool's JSON-serialisable result, or ``{"error": ...}``.
        """
        try:
            name = ToolName(call.name)
        except ValueError:
            logError(ErrorIds.TOOL_UNKNOWN, f"Unknown tool: {call.name}", extra={"session_id": record.session_id})
            record.log(f"Unknown tool: {call.name}")
            return {"error": "Unknown tool"}

        tool_spec = self._handlers[name]
        try:
            args = self.parse_arguments(tool_spec, call.arguments_json)
        except ToolArgumentError as e:
            logError(
                ErrorIds.TOOL_ARGUMENTS_INVALID,
                f"Invalid arguments for {name.value}: {e}",
                extra={"session_id": record.session_id},
            )
            record.log(f"{name.value} rejected: {e}")
            return {"error": f"Invalid arguments for {name.value}: {e}"}

        try:
            result = await tool_spec.handler(args, record)
        except Exception as e:
            logError(
                ErrorIds.UNEXPECTED_ERROR,
                f"Tool {name.value} failed: {e}",
                exc_info=True,
                extra={"session_id": record.session_id},
            )
            record.log(f"{name.value} failed: {e}")
            return {"error": f"{name.value} failed: {e}"}

        logEvent("tool_executed", {"session_id": record.session_id, "tool": name.value, "ok": "error" not in result})
        return result
