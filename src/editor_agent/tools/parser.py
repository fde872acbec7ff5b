"""Detect tool calls embedded in free-form model output.

Four syntaxes are recognized, each found by its own scan over the whole text:

- function call:  ``grep("foo")``, ``grep({"query": "foo"})``, ``ls(path="src")``
- structured JSON: ``{"tool": "grep", "args": {"query": "foo"}}``
- bracket tag:    ``[[GREP:foo]]``, ``[[READ:src/app.py]]``
- fenced block:   a ```` ```json ```` / ```` ```tool ```` block holding the JSON shape

Every syntax goes through `validate_args`; calls to unknown tools or with a
missing required argument are dropped without error.
"""

from __future__ import annotations

import json
import re
from dataclasses import replace
from typing import Any, Mapping

from editor_agent.core.types import ParsedToolCall

from .definitions import MAX_JSON_LENGTH, ToolDefinition, ToolRegistry, validate_args

SYNTAX_FUNCTION = "function"
SYNTAX_JSON = "json"
SYNTAX_BRACKET = "bracket"
SYNTAX_FENCED = "fenced"

_JSON_TOOL_RE = re.compile(
    r'\{\s*"tool"\s*:\s*"([^"]+)"\s*,\s*"args"\s*:\s*(\{[\s\S]*?\})\s*\}', re.IGNORECASE
)
_FENCED_RE = re.compile(r"```(?:tool|json)?\s*\n?([\s\S]*?)\n?```", re.IGNORECASE)
_PAIR_RE = re.compile(r"""(\w+)\s*[=:]\s*(?:"([^"]*)"|'([^']*)'|([^,\s}]+))""")
_QUOTED_RE = re.compile(r"""^(["'])(.*)\1$""", re.DOTALL)
_MAX_TOOL_NAME_LENGTH = 50


def _safe_json_loads(content: str) -> Any:
    if len(content) > MAX_JSON_LENGTH:
        return None
    try:
        return json.loads(content)
    except ValueError:
        return None


def _strip_quotes(value: str) -> str:
    value = value.strip()
    m = _QUOTED_RE.match(value)
    return m.group(2) if m else value


def _split_positional(argstr: str) -> list[str]:
    """Split on commas that are not inside quotes."""

    parts: list[str] = []
    buf: list[str] = []
    quote: str | None = None
    for ch in argstr:
        if quote:
            if ch == quote:
                quote = None
            buf.append(ch)
        elif ch in "\"'":
            quote = ch
            buf.append(ch)
        elif ch == ",":
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
    parts.append("".join(buf))
    return [_strip_quotes(p) for p in parts if p.strip()]


class ToolCallParser:
    def __init__(self, registry: ToolRegistry | None = None) -> None:
        self._registry = registry if registry is not None else ToolRegistry()
        self.refresh()

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def register(self, definition: ToolDefinition) -> None:
        self._registry.register(definition)
        self.refresh()

    def refresh(self) -> None:
        """Recompile the name-dependent patterns after the registry changed."""

        # `(?!)` never matches; keeps an empty registry from matching every `(`.
        names = "|".join(re.escape(n) for n in self._registry.all_names()) or "(?!)"
        self._func_re = re.compile(
            rf"\b({names})\s*\(\s*(\{{[\s\S]*?\}}|[^)]+)\s*\)", re.IGNORECASE
        )
        self._bracket_re = re.compile(rf"\[\[({names}):([^\]]+)\]\]", re.IGNORECASE)
        # One alternative per syntax; a fenced body may list its keys in any order.
        self._quick_re = re.compile(
            rf"\b({names})\s*\(|\[\[({names}):|\{{\s*\"tool\"\s*:|```(?:tool|json)?\s*\{{",
            re.IGNORECASE,
        )

    def has_any(self, text: str) -> bool:
        """Cheap pre-check; may report True for text `parse` finds nothing in."""

        return bool(self._quick_re.search(text))

    def parse(self, text: str) -> list[ParsedToolCall]:
        calls: list[ParsedToolCall] = []
        calls.extend(self._scan_function_calls(text))
        calls.extend(self._scan_json_calls(text))
        calls.extend(self._scan_bracket_calls(text))
        calls.extend(self._scan_fenced_calls(text))

        seen_starts: set[int] = set()
        unique: list[ParsedToolCall] = []
        for call in calls:
            if call.start in seen_starts:
                continue
            seen_starts.add(call.start)
            unique.append(call)

        # A fenced block's JSON body is also matched by the structured-JSON scan.
        fenced = [c for c in unique if c.syntax == SYNTAX_FENCED]
        unique = [
            c
            for c in unique
            if not any(f is not c and f.start <= c.start and c.end <= f.end for f in fenced)
        ]

        unique.sort(key=lambda c: c.start)
        return [replace(c, id=i) for i, c in enumerate(unique)]

    def _sanitize(self, name: str, args: Mapping[str, Any]) -> tuple[str, dict[str, Any]] | None:
        definition = self._registry.resolve(name)
        if definition is None:
            return None
        validated = validate_args(definition, args)
        if validated is None:
            return None
        return definition.name, validated

    def _scan_function_calls(self, text: str) -> list[ParsedToolCall]:
        out: list[ParsedToolCall] = []
        for m in self._func_re.finditer(text):
            definition = self._registry.resolve(m.group(1))
            if definition is None:
                continue
            raw_args = self._function_args(definition, m.group(2).strip())
            if raw_args is None:
                continue
            sanitized = self._sanitize(definition.name, raw_args)
            if sanitized is None:
                continue
            out.append(
                ParsedToolCall(
                    id=-1,
                    tool=sanitized[0],
                    args=sanitized[1],
                    raw=m.group(0),
                    start=m.start(),
                    end=m.end(),
                    syntax=SYNTAX_FUNCTION,
                )
            )
        return out

    def _function_args(self, definition: ToolDefinition, argstr: str) -> dict[str, Any] | None:
        if argstr.startswith("{"):
            parsed = _safe_json_loads(argstr)
            if isinstance(parsed, dict):
                return parsed
            # JS-style object literal: { query: "x", includePattern: "*.ts" }
            return self._pair_args(argstr.strip("{} \t\n"))

        if argstr[:1] in ("'", '"') or ("=" not in argstr and ":" not in argstr):
            return self._positional_args(definition, _split_positional(argstr))

        return self._pair_args(argstr)

    @staticmethod
    def _pair_args(argstr: str) -> dict[str, Any] | None:
        args: dict[str, Any] = {}
        for m in _PAIR_RE.finditer(argstr):
            value = next((g for g in m.group(2, 3, 4) if g is not None), "")
            args[m.group(1)] = value
        return args or None

    @staticmethod
    def _positional_args(definition: ToolDefinition, values: list[str]) -> dict[str, Any] | None:
        if not values:
            return None
        if len(values) == 1:
            target = definition.first_required() or (definition.args[0] if definition.args else None)
            return {target.name: values[0]} if target else None
        return {spec.name: value for spec, value in zip(definition.args, values)}

    def _scan_json_calls(self, text: str) -> list[ParsedToolCall]:
        out: list[ParsedToolCall] = []
        for m in _JSON_TOOL_RE.finditer(text):
            args = _safe_json_loads(m.group(2))
            if not isinstance(args, dict):
                continue
            sanitized = self._sanitize(m.group(1), args)
            if sanitized is None:
                continue
            out.append(
                ParsedToolCall(
                    id=-1,
                    tool=sanitized[0],
                    args=sanitized[1],
                    raw=m.group(0),
                    start=m.start(),
                    end=m.end(),
                    syntax=SYNTAX_JSON,
                )
            )
        return out

    def _scan_bracket_calls(self, text: str) -> list[ParsedToolCall]:
        out: list[ParsedToolCall] = []
        for m in self._bracket_re.finditer(text):
            definition = self._registry.resolve(m.group(1))
            if definition is None:
                continue
            values = [part.strip() for part in m.group(2).strip().split(",")]
            raw_args = {spec.name: value for spec, value in zip(definition.args, values)}
            sanitized = self._sanitize(definition.name, raw_args)
            if sanitized is None:
                continue
            out.append(
                ParsedToolCall(
                    id=-1,
                    tool=sanitized[0],
                    args=sanitized[1],
                    raw=m.group(0),
                    start=m.start(),
                    end=m.end(),
                    syntax=SYNTAX_BRACKET,
                )
            )
        return out

    def _scan_fenced_calls(self, text: str) -> list[ParsedToolCall]:
        out: list[ParsedToolCall] = []
        for m in _FENCED_RE.finditer(text):
            obj = _safe_json_loads(m.group(1).strip())
            if not _is_tool_call_object(obj):
                continue
            sanitized = self._sanitize(obj["tool"], obj["args"])
            if sanitized is None:
                continue
            out.append(
                ParsedToolCall(
                    id=-1,
                    tool=sanitized[0],
                    args=sanitized[1],
                    raw=m.group(0),
                    start=m.start(),
                    end=m.end(),
                    syntax=SYNTAX_FENCED,
                )
            )
        return out


def _is_tool_call_object(obj: Any) -> bool:
    return (
        isinstance(obj, dict)
        and isinstance(obj.get("tool"), str)
        and 0 < len(obj["tool"]) <= _MAX_TOOL_NAME_LENGTH
        and isinstance(obj.get("args"), dict)
    )


def replace_tool_calls(text: str, calls: list[ParsedToolCall], results: Mapping[int, str]) -> str:
    """Replace each call's span in `text` with `results[call.id]`.

    Offsets refer to `text`; replacement runs from the last call backwards so
    earlier offsets stay valid. Calls without a result are left in place.
    """

    out = text
    limit = len(text)
    for call in sorted(calls, key=lambda c: c.start, reverse=True):
        replacement = results.get(call.id)
        if replacement is None or call.end > limit:
            continue
        out = out[: call.start] + replacement + out[call.end :]
        limit = call.start
    return out


_default_parser: ToolCallParser | None = None


def default_parser() -> ToolCallParser:
    global _default_parser
    if _default_parser is None:
        _default_parser = ToolCallParser()
    return _default_parser


def parse_tool_calls(text: str) -> list[ParsedToolCall]:
    return default_parser().parse(text)


def has_tool_calls(text: str) -> bool:
    return default_parser().has_any(text)
