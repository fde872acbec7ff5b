from __future__ import annotations

from editor_agent.orchestrator.prompts import generate_system_prompt, tools_description
from editor_agent.tools.definitions import ArgSpec, ToolDefinition, ToolRegistry
from editor_agent.tools.parser import parse_tool_calls


def test_agent_prompt_includes_tool_guide() -> None:
    prompt = generate_system_prompt("agent", "macos", "find the router")

    assert prompt.startswith("# Role: Autonomous Agent")
    assert "### grep(query, [options])" in prompt
    assert "### read_file(path)" in prompt
    assert "- maxResults: number (default: 100)" in prompt
    assert "- caseSensitive: boolean (default: false)" in prompt
    assert "OS: macos" in prompt
    assert prompt.rstrip().endswith("## Query\nfind the router")


def test_responder_prompt_has_no_tools() -> None:
    prompt = generate_system_prompt("responder", "linux")

    assert prompt.startswith("# Role: Assistant")
    assert "Do not use tools" in prompt
    assert "Available Tools" not in prompt
    assert "## Query" not in prompt


def test_tools_description_lists_registered_tools() -> None:
    registry = ToolRegistry()
    registry.register(ToolDefinition(name="open_tab", args=(ArgSpec("path", "string", required=True),)))

    text = tools_description(registry)
    assert text.startswith("## Available Tools")
    assert "### open_tab(path)" in text


def test_documented_examples_parse() -> None:
    text = tools_description()
    for example in ('grep("useState")', "[[FIND:*.config.js]]", "[[LIST_DIR:src]]", "[[READ_FILE:src/index.ts]]"):
        assert example in text
        assert len(parse_tool_calls(example)) == 1
