from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable

from editor_agent.core.types import ParsedToolCall, ToolExecution, ToolResult
from editor_agent.observability.logging import get_logger

from .backend import FileAccessBackend
from .definitions import ToolDefinition, ToolRegistry
from .executor import ToolExecutor, ToolHandler
from .parser import ToolCallParser, replace_tool_calls
from .rate_limit import RateLimitConfig, RateLimiter, RateLimitStatus

OnToolStart = Callable[[str, dict[str, Any]], None]
OnToolResult = Callable[[str, ToolResult], None]


@dataclass(frozen=True, slots=True)
class ChunkOutcome:
    text: str
    results: list[ToolExecution] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ResponseOutcome:
    processed_text: str
    results: list[ToolExecution] = field(default_factory=list)


def _call_key(call: ParsedToolCall) -> str:
    return f"{call.tool}:{json.dumps(call.args, sort_keys=True, default=str)}:{call.start}"


class AgentToolService:
    """Tool execution for one conversation.

    Owns the streaming buffer, the set of already executed calls, the rate
    limiter and the executor. Every execution path goes through the limiter.
    """

    def __init__(
        self,
        workspace_root: str,
        backend: FileAccessBackend,
        *,
        rate_limit: RateLimitConfig | None = None,
        clock: Callable[[], float] | None = None,
        registry: ToolRegistry | None = None,
    ) -> None:
        registry = registry if registry is not None else ToolRegistry()
        self._executor = ToolExecutor(workspace_root, backend, registry=registry)
        self._parser = ToolCallParser(registry)
        self._limiter = RateLimiter(rate_limit, clock=clock)
        self._buffer = ""
        self._executed: set[str] = set()
        self._log = get_logger("editor_agent.tools.service")

    @property
    def parser(self) -> ToolCallParser:
        return self._parser

    @property
    def executor(self) -> ToolExecutor:
        return self._executor

    @property
    def workspace_root(self) -> str:
        return self._executor.workspace_root

    def register_tool(self, name: str, handler: ToolHandler, definition: ToolDefinition | None = None) -> None:
        self._executor.register_tool(name, handler, definition)
        if definition is not None:
            self._parser.refresh()

    def _admit(self, tool: str) -> ToolResult | None:
        decision = self._limiter.check()
        if decision.allowed:
            self._limiter.record()
            return None
        self._log.warning("tool_rate_limited", tool=tool, reason=decision.reason)
        return ToolResult.fail(decision.reason or "Rate limit exceeded")

    async def _run(
        self,
        call: ParsedToolCall,
        on_tool_start: OnToolStart | None,
        on_tool_result: OnToolResult | None,
    ) -> tuple[ToolExecution, bool]:
        """Returns the execution and whether the call actually ran."""

        denied = self._admit(call.tool)
        if denied is not None:
            if on_tool_result:
                on_tool_result(call.tool, denied)
            return ToolExecution(call, denied), False

        if on_tool_start:
            on_tool_start(call.tool, call.args)
        result = await self._executor.execute(call.tool, call.args)
        if on_tool_result:
            on_tool_result(call.tool, result)
        return ToolExecution(call, result), True

    async def process_chunk(
        self,
        chunk: str,
        on_tool_start: OnToolStart | None = None,
        on_tool_result: OnToolResult | None = None,
    ) -> ChunkOutcome:
        """Append a streamed chunk and execute calls completed so far.

        A call is executed at most once per buffer; a call denied by the rate
        limiter is not marked and is retried on the next chunk.
        """

        self._buffer += chunk
        results: list[ToolExecution] = []

        for call in self._parser.parse(self._buffer):
            key = _call_key(call)
            if key in self._executed:
                continue
            self._log.info("tool_call_detected", tool=call.tool, syntax=call.syntax)
            execution, ran = await self._run(call, on_tool_start, on_tool_result)
            if ran:
                self._executed.add(key)
            results.append(execution)

        return ChunkOutcome(text=self._buffer, results=results)

    async def process_response(
        self,
        text: str,
        on_tool_start: OnToolStart | None = None,
        on_tool_result: OnToolResult | None = None,
    ) -> ResponseOutcome:
        """Execute every call in a complete response and inline the formatted results."""

        if not self._parser.has_any(text):
            return ResponseOutcome(processed_text=text)

        calls = self._parser.parse(text)
        results: list[ToolExecution] = []
        replacements: dict[int, str] = {}
        for call in calls:
            self._log.info("tool_call_detected", tool=call.tool, syntax=call.syntax)
            execution, _ = await self._run(call, on_tool_start, on_tool_result)
            results.append(execution)
            if execution.result.success and execution.result.formatted is not None:
                replacements[call.id] = f"\n{execution.result.formatted}\n"

        return ResponseOutcome(processed_text=replace_tool_calls(text, calls, replacements), results=results)

    async def execute_tool(self, name: str, args: dict[str, Any]) -> ToolResult:
        denied = self._admit(name)
        if denied is not None:
            return denied
        return await self._executor.execute(name, args)

    def rate_limit_status(self) -> RateLimitStatus:
        return self._limiter.status()

    def reset(self) -> None:
        self._buffer = ""
        self._executed.clear()
        self._limiter.reset()
