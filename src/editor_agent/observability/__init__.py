from __future__ import annotations

from .context import add_error, bind_context, new_session_id, new_trace_id, set_iteration, set_state
from .logging import configure_logging, get_logger

__all__ = [
    "add_error",
    "bind_context",
    "configure_logging",
    "get_logger",
    "new_session_id",
    "new_trace_id",
    "set_iteration",
    "set_state",
]
