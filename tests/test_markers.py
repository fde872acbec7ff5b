from __future__ import annotations

from editor_agent.core.types import ParsedToolCall, ToolExecution, ToolResult
from editor_agent.tools.markers import extract_markers, marker_for, tool_results_message


def _call(tool: str) -> ParsedToolCall:
    return ParsedToolCall(id=0, tool=tool, args={}, raw=f"{tool}()", start=0, end=len(tool) + 2)


def test_marker_formats() -> None:
    assert marker_for("grep", ToolResult.ok(formatted="found")) == "\n\n[[TOOL_RESULT:grep:found]]\n"
    assert marker_for("grep", ToolResult.fail("bad")) == "\n\n[[TOOL_ERROR:grep:bad]]\n"
    # Without formatted text the data is rendered as JSON.
    assert marker_for("x", ToolResult.ok({"a": 1})) == '\n\n[[TOOL_RESULT:x:{"a": 1}]]\n'


def test_tool_results_message() -> None:
    message = tool_results_message(
        [
            ToolExecution(_call("grep"), ToolResult.ok(formatted="3 matches")),
            ToolExecution(_call("read_file"), ToolResult.fail("Failed to read file: gone")),
        ]
    )
    assert message == (
        "Tool execution completed. Results:\n\n"
        "Tool: grep\nResult:\n3 matches"
        "\n\n---\n\n"
        "Tool: read_file\nError: Failed to read file: gone"
        "\n\nNow analyze these results and provide your answer to the user's original question. "
        "Do not call more tools unless absolutely necessary."
    )


def test_extract_markers() -> None:
    content = (
        "Intro\n\n[[TOOL_RESULT:grep:{\"type\": \"search-results\", \"files\": []}]]\n"
        "\n\n[[TOOL_ERROR:read_file:Failed to read file: gone]]\n"
        "\n\nOutro [[READ:src/a.py]]"
    )
    scan = extract_markers(content)

    assert [(m.tool, m.is_error) for m in scan.tool_results] == [("grep", False), ("read_file", True)]
    assert scan.tool_results[0].search_data() == {"type": "search-results", "files": []}
    assert scan.tool_results[1].search_data() is None
    assert scan.tool_results[1].content == "Failed to read file: gone"
    assert scan.file_reads == ["src/a.py"]
    assert scan.text == "Intro\n\nOutro"
