from __future__ import annotations

import asyncio
import time
from contextlib import aclosing
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Sequence

from editor_agent.core.config import RateLimitConfig
from editor_agent.core.types import ConversationTurn, ToolExecution, ToolResult
from editor_agent.llm.transport import AbortSignal, ModelStreamTransport
from editor_agent.observability import (
    add_error,
    bind_context,
    get_logger,
    new_session_id,
    new_trace_id,
    set_iteration,
    set_state,
)
from editor_agent.tools.backend import FileAccessBackend
from editor_agent.tools.local_backend import LocalFileBackend
from editor_agent.tools.markers import MAX_ITERATIONS_WARNING, TURN_SEPARATOR, marker_for, tool_results_message
from editor_agent.tools.service import AgentToolService

from .prompts import generate_system_prompt

OnChunk = Callable[[str], None]
OnToolExecution = Callable[[str, bool, str | None], None]

DEFAULT_MAX_ITERATIONS = 10
MAX_TITLE_LENGTH = 50

_TITLE_PROMPT = """Generate a concise, descriptive title (max 5 words) for this conversation:

User: {user}
Assistant: {assistant}

The title should be short, reflect the main topic, use the language of the user's message and contain no quotes or special characters.

Title:"""


class AgentMode(str, Enum):
    AGENT = "agent"
    RESPONDER = "responder"


class LoopState(str, Enum):
    IDLE = "IDLE"
    STREAMING = "STREAMING"
    TOOL_EXECUTING = "TOOL_EXECUTING"
    DONE = "DONE"
    ABORTED = "ABORTED"
    MAX_ITERATIONS = "MAX_ITERATIONS"


@dataclass(slots=True)
class LoopOutcome:
    state: LoopState
    iterations: int = 0
    executions: list[ToolExecution] = field(default_factory=list)
    turns: list[ConversationTurn] = field(default_factory=list)


def fallback_title(user_message: str) -> str:
    """First four words of the message, `...` when there were more."""

    words = user_message.split(" ")
    title = " ".join(words[:4]) + ("..." if len(words) > 4 else "")
    return title[:1].upper() + title[1:]


def _strip_title(text: str) -> str:
    title = text.strip()
    if title[:1] in ("'", '"'):
        title = title[1:]
    if title[-1:] in ("'", '"'):
        title = title[:-1]
    return title[:MAX_TITLE_LENGTH]


class AgentLoopController:
    """Runs one conversation: stream, detect tool calls, execute, feed back, repeat.

    States: IDLE -> STREAMING(i) -> TOOL_EXECUTING(i) -> ... -> DONE | ABORTED |
    MAX_ITERATIONS. Work is strictly sequential; `abort()` may be called from
    another thread and is honored at the next check (before an iteration, per
    chunk, after a stream), never in the middle of a tool.
    """

    def __init__(
        self,
        *,
        transport: ModelStreamTransport,
        model_id: str,
        backend: FileAccessBackend | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        user_os: str = "linux",
        rate_limit: RateLimitConfig | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._transport = transport
        self._model_id = model_id
        self._backend = backend or LocalFileBackend()
        self._max_iterations = max(1, int(max_iterations))
        self._user_os = user_os
        self._rate_limit = rate_limit
        self._clock = clock
        self._service: AgentToolService | None = None
        self._signal: AbortSignal | None = None
        self._state = LoopState.IDLE
        self._session_id = new_session_id()
        self._log = get_logger("editor_agent.agent")

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def tool_service(self) -> AgentToolService | None:
        return self._service

    def set_workspace(self, root: str) -> None:
        self._service = AgentToolService(
            root,
            self._backend,
            rate_limit=self._rate_limit,
            clock=self._clock,
        )

    def _set_state(self, state: LoopState) -> None:
        self._state = state
        set_state(state.value)

    def abort(self) -> None:
        if self._signal is not None:
            self._signal.abort()

    async def send_message(
        self,
        messages: Sequence[ConversationTurn],
        mode: AgentMode | str,
        on_chunk: OnChunk,
        on_tool_execution: OnToolExecution | None = None,
    ) -> LoopOutcome:
        mode = AgentMode(mode)
        signal = AbortSignal()
        self._signal = signal
        bind_context(trace_id=new_trace_id(), session_id=self._session_id)

        if self._service is not None:
            self._service.reset()

        user_query = messages[-1].content if messages else ""
        turns: list[ConversationTurn] = [
            ConversationTurn("system", generate_system_prompt(mode.value, self._user_os, user_query)),
            *messages,
        ]
        t0 = time.perf_counter()

        if mode is AgentMode.RESPONDER:
            self._set_state(LoopState.STREAMING)
            set_iteration(1)
            await self._stream(turns, signal, on_chunk)
            self._set_state(LoopState.ABORTED if signal.aborted else LoopState.DONE)
            self._log.info("agent_done", mode=mode.value, latency_ms=round((time.perf_counter() - t0) * 1000, 2))
            return LoopOutcome(state=self._state, iterations=1, turns=turns)

        executions: list[ToolExecution] = []
        iteration = 0
        while iteration < self._max_iterations:
            if signal.aborted:
                self._set_state(LoopState.ABORTED)
                break

            iteration += 1
            set_iteration(iteration)
            self._set_state(LoopState.STREAMING)
            self._log.info("agent_iteration_start", turns=len(turns))

            text = await self._stream(turns, signal, on_chunk)
            self._log.info("agent_stream_done", chars=len(text))

            if signal.aborted:
                self._set_state(LoopState.ABORTED)
                break

            service = self._service
            if service is None or not service.parser.has_any(text):
                self._set_state(LoopState.DONE)
                break
            calls = service.parser.parse(text)
            if not calls:
                self._set_state(LoopState.DONE)
                break

            self._set_state(LoopState.TOOL_EXECUTING)
            round_executions: list[ToolExecution] = []
            for call in calls:
                self._log.info("tool_call_detected", tool=call.tool, syntax=call.syntax)
                if on_tool_execution:
                    on_tool_execution(call.tool, True, None)
                result = await service.execute_tool(call.tool, call.args)
                if on_tool_execution:
                    on_tool_execution(call.tool, False, result.formatted if result.success else result.error)
                on_chunk(marker_for(call.tool, result))
                round_executions.append(ToolExecution(call, result))

            executions.extend(round_executions)
            turns.append(ConversationTurn("assistant", text))
            turns.append(ConversationTurn("user", tool_results_message(round_executions)))
            on_chunk(TURN_SEPARATOR)
        else:
            self._set_state(LoopState.MAX_ITERATIONS)
            self._log.warning("agent_max_iterations", iterations=iteration)
            on_chunk(MAX_ITERATIONS_WARNING)

        latency_ms = round((time.perf_counter() - t0) * 1000, 2)
        if self._state is LoopState.ABORTED:
            self._log.info("agent_aborted", iterations=iteration, latency_ms=latency_ms)
        elif self._state is LoopState.DONE:
            self._log.info("agent_done", iterations=iteration, tool_calls=len(executions), latency_ms=latency_ms)
        return LoopOutcome(state=self._state, iterations=iteration, executions=executions, turns=turns)

    async def _stream(self, turns: Sequence[ConversationTurn], signal: AbortSignal, on_chunk: OnChunk) -> str:
        """Forward chunks to `on_chunk` and return the accumulated text.

        Transport failures become an `[Error: ...]` chunk, or nothing when the
        stream was aborted.
        """

        parts: list[str] = []
        try:
            async with aclosing(self._transport.stream_chat(self._model_id, list(turns), signal)) as stream:
                async for chunk in stream:
                    if signal.aborted:
                        break
                    parts.append(chunk)
                    on_chunk(chunk)
        except Exception as e:  # noqa: BLE001
            if not signal.aborted:
                message = str(e) or type(e).__name__
                self._log.error("transport_error", error=message)
                add_error(message)
                chunk = f"[Error: {message}]"
                parts.append(chunk)
                on_chunk(chunk)
        return "".join(parts)

    def send_message_sync(
        self,
        messages: Sequence[ConversationTurn],
        mode: AgentMode | str,
        on_chunk: OnChunk,
        on_tool_execution: OnToolExecution | None = None,
    ) -> LoopOutcome:
        """Sync wrapper for CLI/tests."""

        return asyncio.run(self.send_message(messages, mode, on_chunk, on_tool_execution))

    async def generate_title(self, user_message: str, assistant_response: str) -> str:
        prompt = _TITLE_PROMPT.format(user=user_message, assistant=assistant_response)
        try:
            response = await self._transport.complete_chat(self._model_id, [ConversationTurn("user", prompt)])
        except Exception as e:  # noqa: BLE001
            self._log.warning("title_generation_failed", error=str(e))
            return fallback_title(user_message)
        title = _strip_title(response)
        return title or fallback_title(user_message)

    async def execute_tool(self, name: str, args: dict[str, Any]) -> ToolResult:
        """Manual tool invocation, subject to the same rate limits as the loop."""

        if self._service is None:
            return ToolResult.fail("Tool service not initialized. Set workspace first.")
        return await self._service.execute_tool(name, args)
