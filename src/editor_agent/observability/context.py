from __future__ import annotations

import uuid
from contextvars import ContextVar


_trace_id: ContextVar[str | None] = ContextVar("trace_id", default=None)
_session_id: ContextVar[str | None] = ContextVar("session_id", default=None)
_iteration: ContextVar[int | None] = ContextVar("iteration", default=None)
_state: ContextVar[str | None] = ContextVar("state", default=None)
_errors: ContextVar[list[str] | None] = ContextVar("errors", default=None)


def new_session_id() -> str:
    """`sess-` plus 12 hex chars; one per controller."""

    return f"sess-{uuid.uuid4().hex[:12]}"


def new_trace_id() -> str:
    return uuid.uuid4().hex


def bind_context(*, trace_id: str, session_id: str) -> None:
    """Bind ids for one `send_message` call; resets the iteration and error list."""

    _trace_id.set(trace_id)
    _session_id.set(session_id)
    _iteration.set(None)
    _errors.set([])


def set_iteration(iteration: int) -> None:
    _iteration.set(iteration)


def set_state(state: str) -> None:
    _state.set(state)


def add_error(message: str) -> None:
    errs = list(_errors.get() or [])
    errs.append(message)
    _errors.set(errs)


def snapshot() -> dict[str, object]:
    """Return a snapshot of current observability context for logging."""

    out: dict[str, object] = {}
    if (v := _trace_id.get()) is not None:
        out["trace_id"] = v
    if (v := _session_id.get()) is not None:
        out["session_id"] = v
    if (v := _iteration.get()) is not None:
        out["iteration"] = v
    if (v := _state.get()) is not None:
        out["state"] = v
    errs = _errors.get()
    if errs:
        out["errors"] = list(errs)
    return out
