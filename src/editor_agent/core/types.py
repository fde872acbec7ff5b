from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True, slots=True)
class ParsedToolCall:
    """A tool call detected in model output.

    `start`/`end` are offsets into the scanned text; `id` is the call's index in
    the sorted parse result and is what replacement maps are keyed by.
    """

    id: int
    tool: str
    args: dict[str, Any]
    raw: str
    start: int
    end: int
    syntax: str = "function"


@dataclass(frozen=True, slots=True)
class ToolResult:
    success: bool
    data: Any = None
    error: str | None = None
    formatted: str | None = None

    @classmethod
    def ok(cls, data: Any = None, *, formatted: str | None = None) -> "ToolResult":
        return cls(success=True, data=data, formatted=formatted)

    @classmethod
    def fail(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)


@dataclass(frozen=True, slots=True)
class ToolExecution:
    call: ParsedToolCall
    result: ToolResult


@dataclass(frozen=True, slots=True)
class ConversationTurn:
    role: Role
    content: str

    def as_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(slots=True)
class RateLimitState:
    calls_in_last_minute: list[float] = field(default_factory=list)
    total_calls_in_session: int = 0
    last_call_ms: float | None = None
