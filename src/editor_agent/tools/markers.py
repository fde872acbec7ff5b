"""In-text markers shared with the chat rendering layer.

Tool outcomes are streamed to the UI inline, wrapped in markers the renderer
parses back out:

    [[TOOL_RESULT:<tool>:<formatted>]]
    [[TOOL_ERROR:<tool>:<error>]]
    [[READ_FILE:<path>]] / [[READ:<path>]]

The literal formats are a contract; do not change them.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Sequence

from editor_agent.core.types import ToolExecution, ToolResult

TURN_SEPARATOR = "\n\n---\n\n"
MAX_ITERATIONS_WARNING = "\n\n⚠️ Maximum iterations reached. Stopping agent loop.\n"

_MARKER_RE = re.compile(
    r"\[\[TOOL_(RESULT|ERROR):(\w+):([\s\S]*?)\]\]|\[\[(READ_FILE|READ):([^\]]+)\]\]"
)
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def tool_result_marker(tool: str, formatted: str) -> str:
    return f"\n\n[[TOOL_RESULT:{tool}:{formatted}]]\n"


def tool_error_marker(tool: str, error: str) -> str:
    return f"\n\n[[TOOL_ERROR:{tool}:{error}]]\n"


def result_text(result: ToolResult) -> str:
    """Model/human readable text for a successful result."""

    if result.formatted is not None:
        return result.formatted
    try:
        return json.dumps(result.data, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(result.data)


def marker_for(tool: str, result: ToolResult) -> str:
    if result.success:
        return tool_result_marker(tool, result_text(result))
    return tool_error_marker(tool, result.error or "Unknown error")


def tool_results_message(executions: Sequence[ToolExecution]) -> str:
    """Build the synthetic user turn that hands tool output back to the model."""

    parts: list[str] = []
    for ex in executions:
        if ex.result.success:
            parts.append(f"Tool: {ex.call.tool}\nResult:\n{result_text(ex.result)}")
        else:
            parts.append(f"Tool: {ex.call.tool}\nError: {ex.result.error or 'Unknown error'}")

    return (
        "Tool execution completed. Results:\n\n"
        + TURN_SEPARATOR.join(parts)
        + "\n\nNow analyze these results and provide your answer to the user's original question. "
        "Do not call more tools unless absolutely necessary."
    )


@dataclass(frozen=True, slots=True)
class ToolMarker:
    tool: str
    is_error: bool
    content: str

    def search_data(self) -> dict[str, Any] | None:
        """Decoded payload when the content is a search/find result document."""

        try:
            data = json.loads(self.content)
        except ValueError:
            return None
        if isinstance(data, dict) and data.get("type") in ("search-results", "find-results"):
            return data
        return None


@dataclass(frozen=True, slots=True)
class MarkerScan:
    tool_results: list[ToolMarker] = field(default_factory=list)
    file_reads: list[str] = field(default_factory=list)
    text: str = ""


def extract_markers(content: str) -> MarkerScan:
    """Pull markers out of streamed chat text, returning them and the remaining prose."""

    tool_results: list[ToolMarker] = []
    file_reads: list[str] = []
    for m in _MARKER_RE.finditer(content):
        if m.group(1):
            tool_results.append(ToolMarker(tool=m.group(2), is_error=m.group(1) == "ERROR", content=m.group(3).strip()))
        else:
            file_reads.append(m.group(5).strip())

    text = _MARKER_RE.sub("", content)
    text = _BLANK_LINES_RE.sub("\n\n", text).strip()
    return MarkerScan(tool_results=tool_results, file_reads=file_reads, text=text)
