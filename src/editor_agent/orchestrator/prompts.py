"""System prompts for the two chat modes.

The tool guide is rendered from the registry so custom tools registered on a
service show up with their arguments.
"""

from __future__ import annotations

from editor_agent.tools.definitions import ArgSpec, ToolDefinition, ToolRegistry

AGENT = "agent"
RESPONDER = "responder"

_TOOL_SUMMARIES: dict[str, str] = {
    "grep": "Search for text in files under the workspace.",
    "find_by_name": "Find files or directories by name (`*` and `?` wildcards).",
    "list_dir": "List the contents of a directory.",
    "read_file": "Read the content of a file.",
    "file_info": "Show the size of a file.",
}

_TOOL_EXAMPLES: dict[str, tuple[str, ...]] = {
    "grep": ('grep("useState")', 'grep({"query": "function", "includePattern": "*.ts"})', "[[GREP:useState]]"),
    "find_by_name": ('find_by_name("*.tsx")', 'find_by_name({"pattern": "test*", "type": "file"})', "[[FIND:*.config.js]]"),
    "list_dir": ('list_dir("src")', 'list_dir({"path": "src/components", "recursive": true})', "[[LIST_DIR:src]]"),
    "read_file": ('read_file("src/App.tsx")', "[[READ:package.json]]", "[[READ_FILE:src/index.ts]]"),
    "file_info": ('file_info("package.json")',),
}

_AGENT_ROLE = """You are an autonomous agent that performs actions instead of describing them.
- Never announce that you are going to read or search; write the tool call instead
- Tool calls in your response are executed automatically and the results are sent back to you
- After receiving tool results, always finish with your analysis and answer"""

_RESPONDER_ROLE = "Answer concisely. Provide ready solutions without executing anything."

_RULES = """## Rules
- Get straight to the point, no introductions
- Ask at most one question, and only if the task is impossible without clarification
- For code changes give the file, the lines and the change
- After tool execution, always complete your response with analysis
- Always put code in fenced markdown blocks with a language tag (```python, ```bash)"""

_AGENT_WORKFLOW = """## Workflow
1. Need to find something? Write grep() or find_by_name() now
2. Need file content? Write read_file("path") now
3. When results arrive, analyze them and answer
4. Call more tools only when the results are not enough"""


def _describe_arg(spec: ArgSpec) -> str:
    if spec.required:
        return f"- {spec.name}: {spec.type} (required)"
    if spec.default is None or spec.default == "":
        return f"- {spec.name}: {spec.type}"
    default = str(spec.default).lower() if isinstance(spec.default, bool) else spec.default
    return f"- {spec.name}: {spec.type} (default: {default})"


def _describe_tool(definition: ToolDefinition) -> str:
    required = [s.name for s in definition.args if s.required]
    signature = ", ".join(required)
    if len(required) < len(definition.args):
        signature = f"{signature}, [options]" if signature else "[options]"

    lines = [f"### {definition.name}({signature})"]
    summary = _TOOL_SUMMARIES.get(definition.name)
    if summary:
        lines.append(summary)
    lines.extend(_describe_arg(spec) for spec in definition.args)
    examples = _TOOL_EXAMPLES.get(definition.name)
    if examples:
        lines.append("")
        lines.append("Examples:")
        lines.extend(f"- {example}" for example in examples)
    return "\n".join(lines)


def tools_description(registry: ToolRegistry | None = None) -> str:
    """Markdown guide to the available tools and their call syntaxes."""

    registry = registry if registry is not None else ToolRegistry()
    sections = [_describe_tool(d) for d in registry]
    return "## Available Tools\n\n" + "\n\n".join(sections)


def generate_system_prompt(
    mode: str,
    user_os: str = "linux",
    user_query: str | None = None,
    *,
    registry: ToolRegistry | None = None,
) -> str:
    is_agent = mode == AGENT
    parts = [
        f"# Role: {'Autonomous Agent' if is_agent else 'Assistant'}",
        _AGENT_ROLE if is_agent else _RESPONDER_ROLE,
        _RULES if is_agent else _RULES + "\n- Do not use tools. Provide ready commands and code.",
    ]
    if is_agent:
        parts.append(tools_description(registry))
        parts.append(_AGENT_WORKFLOW)
    parts.append(f"## System\nOS: {user_os}")
    if user_query:
        parts.append(f"## Query\n{user_query}")
    return "\n\n".join(parts) + "\n"
