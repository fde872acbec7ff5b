"""Tool definitions and argument validation.

Every tool a model may call is described by a `ToolDefinition`: a canonical
name, case-insensitive aliases and an ordered list of `ArgSpec`s. The order of
the specs is significant: positional arguments (bracket tags, bare function
arguments) are mapped onto it.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Literal, Mapping

ArgType = Literal["string", "number", "boolean", "array"]

MAX_STRING_LENGTH = 10_000
MAX_ARRAY_LENGTH = 100
MAX_PATH_LENGTH = 500
MAX_JSON_LENGTH = 10_000

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_TRUE_STRINGS = frozenset({"true", "1", "yes"})


@dataclass(frozen=True, slots=True)
class ArgSpec:
    name: str
    type: ArgType
    required: bool = False
    default: Any = None
    max_length: int | None = None
    min: int | None = None
    max: int | None = None


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    name: str
    aliases: tuple[str, ...] = ()
    args: tuple[ArgSpec, ...] = ()

    def names(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)

    def arg(self, name: str) -> ArgSpec | None:
        for spec in self.args:
            if spec.name == name:
                return spec
        return None

    def first_required(self) -> ArgSpec | None:
        for spec in self.args:
            if spec.required:
                return spec
        return None


BUILTIN_TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="grep",
        aliases=("Grep", "GREP", "search", "Search"),
        args=(
            ArgSpec("query", "string", required=True, max_length=1000),
            ArgSpec("path", "string", default=".", max_length=MAX_PATH_LENGTH),
            ArgSpec("caseSensitive", "boolean", default=False),
            ArgSpec("wholeWord", "boolean", default=False),
            ArgSpec("regex", "boolean", default=False),
            ArgSpec("includePattern", "string", default="", max_length=200),
            ArgSpec("excludePattern", "string", default="", max_length=200),
            ArgSpec("maxResults", "number", default=100, min=1, max=500),
        ),
    ),
    ToolDefinition(
        name="find_by_name",
        aliases=("find", "Find", "FIND", "find_file", "findFile"),
        args=(
            ArgSpec("pattern", "string", required=True, max_length=200),
            ArgSpec("path", "string", default=".", max_length=MAX_PATH_LENGTH),
            ArgSpec("type", "string", default="all"),
            ArgSpec("maxDepth", "number", default=10, min=1, max=20),
            ArgSpec("maxResults", "number", default=50, min=1, max=200),
        ),
    ),
    ToolDefinition(
        name="list_dir",
        aliases=("ls", "listDir", "list_directory", "dir"),
        args=(
            ArgSpec("path", "string", required=True, max_length=MAX_PATH_LENGTH),
            ArgSpec("recursive", "boolean", default=False),
            ArgSpec("maxDepth", "number", default=3, min=1, max=10),
            ArgSpec("showHidden", "boolean", default=False),
        ),
    ),
    ToolDefinition(
        name="read_file",
        aliases=("readFile", "read", "cat", "READ"),
        args=(ArgSpec("path", "string", required=True, max_length=MAX_PATH_LENGTH),),
    ),
    ToolDefinition(
        name="file_info",
        aliases=("fileInfo", "stat", "info"),
        args=(ArgSpec("path", "string", required=True, max_length=MAX_PATH_LENGTH),),
    ),
)


class ToolRegistry:
    """Ordered set of tool definitions with case-insensitive name lookup."""

    def __init__(self, definitions: Iterable[ToolDefinition] = BUILTIN_TOOLS) -> None:
        self._definitions: dict[str, ToolDefinition] = {}
        self._lookup: dict[str, str] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: ToolDefinition) -> None:
        canonical = definition.name.lower()
        self._definitions[canonical] = definition
        for name in definition.names():
            self._lookup[name.lower()] = canonical

    def resolve(self, name: str) -> ToolDefinition | None:
        canonical = self._lookup.get(name.lower())
        return self._definitions.get(canonical) if canonical else None

    def normalize_name(self, name: str) -> str:
        definition = self.resolve(name)
        return definition.name if definition else name.lower()

    def all_names(self) -> list[str]:
        """Canonical names and aliases, longest first (for regex alternation)."""

        names = {n for d in self._definitions.values() for n in d.names()}
        return sorted(names, key=lambda n: (-len(n), n))

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._definitions.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._lookup

    def __len__(self) -> int:
        return len(self._definitions)


_INVALID = object()


def _coerce(value: Any, spec: ArgSpec) -> Any:
    """Convert one value to the spec's type; returns `_INVALID` when impossible."""

    if spec.type == "string":
        if isinstance(value, bool):
            text = "true" if value else "false"
        else:
            text = value if isinstance(value, str) else str(value)
        return text[: spec.max_length or MAX_STRING_LENGTH]

    if spec.type == "number":
        if isinstance(value, bool):
            return _INVALID
        if isinstance(value, int):
            num = value
        elif isinstance(value, float):
            if not math.isfinite(value):
                return _INVALID
            num = int(value)
        else:
            m = _LEADING_INT_RE.match(str(value))
            if not m:
                return _INVALID
            num = int(m.group(1))
        if spec.min is not None and num < spec.min:
            num = spec.min
        if spec.max is not None and num > spec.max:
            num = spec.max
        return num

    if spec.type == "boolean":
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value in _TRUE_STRINGS
        return bool(value)

    if spec.type == "array":
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",")]
        if not isinstance(value, (list, tuple)):
            return _INVALID
        return list(value)[:MAX_ARRAY_LENGTH]

    return _INVALID


def missing_required(definition: ToolDefinition, args: Mapping[str, Any]) -> list[str]:
    return [s.name for s in definition.args if s.required and args.get(s.name) is None]


def validate_args(definition: ToolDefinition, args: Mapping[str, Any]) -> dict[str, Any] | None:
    """Sanitize `args` against `definition`.

    Returns None when a required argument is absent or cannot be coerced.
    Unknown keys are dropped and defaults filled in.
    """

    sanitized: dict[str, Any] = {}
    for spec in definition.args:
        value = args.get(spec.name)
        if value is None:
            if spec.required:
                return None
            if spec.default is not None:
                sanitized[spec.name] = spec.default
            continue

        coerced = _coerce(value, spec)
        if coerced is _INVALID:
            if spec.required:
                return None
            if spec.default is not None:
                sanitized[spec.name] = spec.default
            continue
        sanitized[spec.name] = coerced

    return sanitized
