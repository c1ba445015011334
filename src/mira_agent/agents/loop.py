"""Agent loop: the bounded orchestration state machine.

A turn appends the user's text to the session history and then alternates
between model calls and tool execution until the model answers without
tool calls or the iteration budget runs out.
"""

import json
import re
from typing import Any

from mira_agent.agents.prompts import SYSTEM_PROMPT
from mira_agent.core.llm import ModelClient, UpstreamModelError
from mira_agent.core.logging import logEvent, logForDebugging
from mira_agent.core.sessions import SessionRecord, SessionRegistry
from mira_agent.models.chat import AgentState, ModelReply, TurnResult
from mira_agent.tools.executor import ToolExecutor

DEFAULT_MAX_ITERATIONS = 4

FALLBACK_TEXT = "No pude generar una respuesta."

# Lexical task detector. Spanish first (the product's default language).
TASK_VERBS = frozenset({
    "abre", "abrir",
    "busca", "buscar",
    "rellena", "rellenar",
    "completa", "completar",
    "descarga", "descargar",
    "sube", "subir",
    "publica", "publicar",
    "crea", "crear",
    "pon", "reproduce", "reproducir",
    "open", "search", "fill", "download", "upload", "publish", "create", "play",
})

_WORD_RE = re.compile(r"\w+", re.UNICODE)


def is_task_like(text: str) -> bool:
    """Return True if any word in the text starts with one of the fixed action verbs.

    Prefix matching keeps imperatives with attached pronouns such as
    "abrelo" or "ponme".
    """
    words = _WORD_RE.findall((text or "").lower())
    return any(word.startswith(verb) for word in words for verb in TASK_VERBS)


class AgentLoop:
    """Drives one conversational turn through the model and the tool executor.

    Turns on the same session are serialized by the session's ``turn_lock``;
    turns on different sessions run independently.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        model: ModelClient,
        executor: ToolExecutor,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        """Initialize the agent loop.

        Args:
            registry: Registry holding per-session history and turn stores.
            model: Client used for each model round-trip.
            executor: Executes the tool calls the model requests.
            max_iterations: Maximum model round-trips per turn.
            system_prompt: System message prepended to every model call.
        """
        self._registry = registry
        self._model = model
        self._executor = executor
        self._max_iterations = max_iterations
        self._system_prompt = system_prompt

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    async def run_turn(self, session_id: str, user_text: str) -> TurnResult:
        """Run one user turn to completion.

        Args:
            session_id: Session the turn belongs to.
            user_text: The user's message.

        Returns:
            The turn's final text, agent state, plan, logs and actions.

        Raises:
            UpstreamModelError: If a model call fails. History keeps the user
                message; the turn-scoped stores keep whatever tools wrote.
        """
        record = self._registry.get(session_id)
        async with record.turn_lock:
            return await self._run_locked(record, user_text)

    async def _run_locked(self, record: SessionRecord, user_text: str) -> TurnResult:
        record.begin_turn()
        record.append_message("user", user_text)

        want_agent = is_task_like(user_text)
        state = AgentState.PLANNING if want_agent else AgentState.IDLE
        logEvent("turn_started", {"session_id": record.session_id, "state": state.value})

        messages: list[dict[str, Any]] = [
            {"role": "system", "content": self._system_prompt},
            *record.history,
        ]

        final_text: str | None = None
        iterations = 0
        tools_used = False

        while iterations < self._max_iterations:
            iterations += 1
            try:
                reply = await self._model.complete(messages, self._executor.definitions)
            except UpstreamModelError:
                logEvent(
                    "turn_failed",
                    {"session_id": record.session_id, "state": AgentState.RECOVERING.value, "iteration": iterations},
                )
                raise

            if not reply.wants_tools:
                final_text = (reply.content or "").strip() or FALLBACK_TEXT
                state = AgentState.DONE if (want_agent or tools_used) else AgentState.IDLE
                break

            tools_used = True
            state = AgentState.EXECUTING
            await self._execute_tools(record, reply, messages)
            state = AgentState.OBSERVING

        if final_text is None:
            logForDebugging(
                f"Iteration budget exhausted after {iterations} model calls",
                level="warning",
                extra={"session_id": record.session_id},
            )
            final_text = FALLBACK_TEXT

        record.append_message("assistant", final_text)
        logEvent(
            "turn_completed",
            {"session_id": record.session_id, "state": state.value, "iterations": iterations},
        )

        return TurnResult(
            final_text=final_text,
            state=state,
            plan=record.plan,
            logs=list(record.tool_log),
            actions=list(record.actions),
            iterations=iterations,
        )

    async def _execute_tools(
        self,
        record: SessionRecord,
        reply: ModelReply,
        messages: list[dict[str, Any]],
    ) -> None:
        """Execute tool calls in the order returned, appending each observation."""
        messages.append({
            "role": "assistant",
            "content": reply.content or "",
            "tool_calls": [call.to_message_entry() for call in reply.tool_calls],
        })
        for call in reply.tool_calls:
            result = await self._executor.execute(record, call)
            messages.append({
                "role": "tool",
                "tool_call_id": call.id,
                "name": call.name,
                "content": json.dumps(result, ensure_ascii=False),
            })
