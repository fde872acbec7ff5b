from __future__ import annotations

import json

from editor_agent.tools.definitions import ArgSpec, ToolDefinition, ToolRegistry
from editor_agent.tools.parser import (
    SYNTAX_BRACKET,
    SYNTAX_FENCED,
    SYNTAX_FUNCTION,
    SYNTAX_JSON,
    ToolCallParser,
    has_tool_calls,
    parse_tool_calls,
    replace_tool_calls,
)


def test_function_call_with_single_positional_argument() -> None:
    calls = parse_tool_calls('grep("useState")')
    assert len(calls) == 1
    call = calls[0]
    assert call.id == 0
    assert call.tool == "grep"
    assert call.syntax == SYNTAX_FUNCTION
    assert call.args["query"] == "useState"
    assert call.args["maxResults"] == 100
    assert call.raw == 'grep("useState")'


def test_alias_resolves_to_canonical_name() -> None:
    calls = parse_tool_calls('cat("src/App.tsx")')
    assert [(c.tool, c.args) for c in calls] == [("read_file", {"path": "src/App.tsx"})]


def test_multiple_positional_arguments_follow_declared_order() -> None:
    (call,) = parse_tool_calls('grep("foo", "src")')
    assert call.args["query"] == "foo"
    assert call.args["path"] == "src"


def test_function_call_with_js_object_literal() -> None:
    (call,) = parse_tool_calls('grep({ query: "function", includePattern: "*.ts" })')
    assert call.args["query"] == "function"
    assert call.args["includePattern"] == "*.ts"


def test_function_call_with_json_object() -> None:
    (call,) = parse_tool_calls('grep({"query": "foo", "maxResults": 5})')
    assert call.args["query"] == "foo"
    assert call.args["maxResults"] == 5


def test_function_call_with_keyword_arguments() -> None:
    (call,) = parse_tool_calls('list_dir(path="src", recursive=true)')
    assert call.tool == "list_dir"
    assert call.args["path"] == "src"
    assert call.args["recursive"] is True


def test_structured_json_call() -> None:
    text = 'Reading now: {"tool": "read_file", "args": {"path": "a.py"}}'
    (call,) = parse_tool_calls(text)
    assert call.syntax == SYNTAX_JSON
    assert call.tool == "read_file"
    assert call.args == {"path": "a.py"}
    assert text[call.start : call.end] == call.raw


def test_bracket_calls() -> None:
    calls = parse_tool_calls("[[READ:package.json]] and [[GREP:useState]]")
    assert [(c.tool, c.syntax) for c in calls] == [("read_file", SYNTAX_BRACKET), ("grep", SYNTAX_BRACKET)]
    assert calls[0].args == {"path": "package.json"}
    assert calls[1].args["query"] == "useState"


def test_fenced_block_is_reported_once() -> None:
    text = 'Plan:\n```json\n{"tool": "grep", "args": {"query": "TODO"}}\n```\n'
    calls = parse_tool_calls(text)
    assert len(calls) == 1
    assert calls[0].syntax == SYNTAX_FENCED
    assert calls[0].args["query"] == "TODO"


def test_fenced_block_with_args_before_tool_is_detected() -> None:
    text = '```json\n{"args": {"query": "foo"}, "tool": "grep"}\n```'
    assert has_tool_calls(text)
    assert [(c.tool, c.args["query"]) for c in parse_tool_calls(text)] == [("grep", "foo")]
    assert has_tool_calls('```\n{"tool": "grep", "args": {}}\n```')
    assert not has_tool_calls("```python\nprint(1)\n```")


def test_unknown_tools_and_missing_arguments_are_dropped() -> None:
    assert parse_tool_calls('delete_everything("now")') == []
    assert parse_tool_calls('{"tool": "rm", "args": {"path": "/"}}') == []
    assert parse_tool_calls('{"tool": "read_file", "args": {}}') == []
    assert parse_tool_calls("read_file()") == []


def test_oversized_json_payload_is_rejected() -> None:
    payload = json.dumps({"tool": "grep", "args": {"query": "x" * 20_000}})
    assert parse_tool_calls(payload) == []


def test_calls_are_sorted_and_numbered() -> None:
    text = 'First [[LS:src]] then grep("a") and finally read_file("b.py")'
    calls = parse_tool_calls(text)
    assert [c.tool for c in calls] == ["list_dir", "grep", "read_file"]
    assert [c.id for c in calls] == [0, 1, 2]
    assert calls[0].start < calls[1].start < calls[2].start


def test_has_tool_calls() -> None:
    assert has_tool_calls('grep("x")')
    assert has_tool_calls("[[READ:a]]")
    assert not has_tool_calls("Just a plain answer without any calls.")


def test_replace_tool_calls_by_id() -> None:
    text = 'A grep("x") B read_file("y") C'
    calls = parse_tool_calls(text)
    assert replace_tool_calls(text, calls, {0: "[R0]", 1: "[R1]"}) == "A [R0] B [R1] C"
    assert replace_tool_calls(text, calls, {1: "[R1]"}) == 'A grep("x") B [R1] C'


def test_custom_tool_registration() -> None:
    parser = ToolCallParser(ToolRegistry())
    assert parser.parse('open_tab("README.md")') == []

    parser.register(ToolDefinition(name="open_tab", args=(ArgSpec("path", "string", required=True),)))
    (call,) = parser.parse('open_tab("README.md")')
    assert call.tool == "open_tab"
    assert call.args == {"path": "README.md"}
