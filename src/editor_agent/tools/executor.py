from __future__ import annotations

import json
import re
from dataclasses import asdict
from typing import Any, Awaitable, Callable

from editor_agent.core.types import ToolResult
from editor_agent.observability.logging import get_logger

from .backend import FileAccessBackend, FileEntry, SearchResult
from .definitions import ToolDefinition, ToolRegistry, missing_required, validate_args
from .sandbox import display_path, relative_path, resolve_root, sanitize_path

ToolHandler = Callable[[dict[str, Any]], Awaitable[ToolResult]]

MAX_MATCHES_PER_FILE = 5
MAX_MATCH_TEXT = 200


def format_file_size(size: int | float) -> str:
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    if unit == 0:
        return f"{int(value)} {units[0]}"
    return f"{value:.1f} {units[unit]}"


def glob_to_regex(pattern: str) -> str:
    """`*` and `?` wildcards; everything else matches literally."""

    return "".join(".*" if ch == "*" else "." if ch == "?" else re.escape(ch) for ch in pattern)


class ToolExecutor:
    """Dispatch named tool calls to a `FileAccessBackend`.

    `execute` never raises: unknown tools, sandbox rejections and backend
    failures all come back as a failed `ToolResult`.
    """

    def __init__(
        self,
        workspace_root: str,
        backend: FileAccessBackend,
        *,
        registry: ToolRegistry | None = None,
    ) -> None:
        self._workspace = resolve_root(workspace_root)
        self._backend = backend
        self._registry = registry if registry is not None else ToolRegistry()
        self._handlers: dict[str, ToolHandler] = {}
        self._log = get_logger("editor_agent.tools.executor")

        builtin: dict[str, ToolHandler] = {
            "grep": self.grep,
            "find_by_name": self.find_by_name,
            "list_dir": self.list_dir,
            "read_file": self.read_file,
            "file_info": self.file_info,
        }
        for name, handler in builtin.items():
            definition = self._registry.resolve(name)
            for alias in definition.names() if definition else (name,):
                self._handlers[alias.lower()] = handler

    @property
    def workspace_root(self) -> str:
        return self._workspace

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def register_tool(self, name: str, handler: ToolHandler, definition: ToolDefinition | None = None) -> None:
        if definition is not None:
            self._registry.register(definition)
            for alias in definition.names():
                self._handlers[alias.lower()] = handler
        self._handlers[name.lower()] = handler

    def available_tools(self) -> list[str]:
        return sorted(self._handlers)

    async def execute(self, tool_name: str, args: dict[str, Any]) -> ToolResult:
        handler = self._handlers.get(tool_name.lower())
        if handler is None:
            return ToolResult.fail(f"Unknown tool: {tool_name}")

        definition = self._registry.resolve(tool_name)
        if definition is not None:
            missing = missing_required(definition, args)
            if missing:
                return ToolResult.fail(f"Missing required argument: {missing[0]}")
            validated = validate_args(definition, args)
            if validated is None:
                return ToolResult.fail(f"Invalid arguments for {definition.name}")
            args = validated

        try:
            result = await handler(args)
        except Exception as e:  # noqa: BLE001
            self._log.exception("tool_error", tool=tool_name)
            return ToolResult.fail(str(e) or type(e).__name__)

        if result.success:
            self._log.info("tool_ok", tool=tool_name)
        else:
            self._log.info("tool_failed", tool=tool_name, error=result.error)
        return result

    def _relative(self, path: str) -> str:
        return relative_path(path, self._workspace)

    async def grep(self, args: dict[str, Any]) -> ToolResult:
        query = str(args.get("query") or "")
        if not query.strip():
            return ToolResult.fail("Query is required")

        check = sanitize_path(args.get("path") or ".", self._workspace)
        if not check.ok:
            return ToolResult.fail(check.error.message)
        root = check.path
        max_results = int(args.get("maxResults", 100))

        try:
            results = await self._backend.search_text(
                root,
                query,
                case_sensitive=bool(args.get("caseSensitive", False)),
                whole_word=bool(args.get("wholeWord", False)),
                regex=bool(args.get("regex", False)),
                include_glob=str(args.get("includePattern") or ""),
                exclude_glob=str(args.get("excludePattern") or ""),
            )
        except Exception as e:  # noqa: BLE001
            return ToolResult.fail(f"Search failed: {e}")

        total = 0
        limited: list[SearchResult] = []
        for result in results:
            if total >= max_results:
                break
            matches = result.matches[: max_results - total]
            if matches:
                limited.append(SearchResult(file=result.file, matches=list(matches)))
                total += len(matches)

        files = [
            {
                "name": r.file.name,
                "path": self._relative(r.file.path),
                "fullPath": r.file.path,
                "matchCount": len(r.matches),
                "matches": [
                    {"line": m.line, "text": m.line_text.strip()[:MAX_MATCH_TEXT]}
                    for m in r.matches[:MAX_MATCHES_PER_FILE]
                ],
            }
            for r in limited
        ]
        formatted = json.dumps(
            {
                "type": "search-results",
                "query": query,
                "path": display_path(root, self._workspace),
                "totalFiles": len(limited),
                "totalMatches": total,
                "files": files,
            },
            ensure_ascii=False,
        )
        data = {
            "results": [asdict(r) for r in limited],
            "totalFiles": len(limited),
            "totalMatches": total,
            "truncated": total >= max_results,
        }
        return ToolResult.ok(data, formatted=formatted)

    async def find_by_name(self, args: dict[str, Any]) -> ToolResult:
        pattern = str(args.get("pattern") or "")
        if not pattern.strip():
            return ToolResult.fail("Pattern is required")

        check = sanitize_path(args.get("path") or ".", self._workspace)
        if not check.ok:
            return ToolResult.fail(check.error.message)
        root = check.path
        kind = str(args.get("type") or "all")
        max_depth = int(args.get("maxDepth", 10))
        max_results = int(args.get("maxResults", 50))

        try:
            tree = await self._backend.list_tree(root)
        except Exception as e:  # noqa: BLE001
            return ToolResult.fail(f"Find failed: {e}")

        name_re = re.compile(glob_to_regex(pattern), re.IGNORECASE)
        matches: list[FileEntry] = []

        def visit(entry: FileEntry, depth: int) -> None:
            if depth > max_depth or len(matches) >= max_results:
                return
            wanted = kind == "all" or (kind == "dir") == entry.is_dir
            if wanted and name_re.fullmatch(entry.name):
                matches.append(entry)
            for child in entry.children or ():
                if len(matches) >= max_results:
                    break
                visit(child, depth + 1)

        for entry in tree:
            if len(matches) >= max_results:
                break
            visit(entry, 0)

        files = [
            {"name": e.name, "path": self._relative(e.path), "fullPath": e.path, "isDir": e.is_dir}
            for e in matches
        ]
        formatted = json.dumps(
            {
                "type": "find-results",
                "pattern": pattern,
                "path": display_path(root, self._workspace),
                "totalFiles": len(files),
                "files": files,
            },
            ensure_ascii=False,
        )
        data = {"matches": files, "total": len(files), "truncated": len(files) >= max_results}
        return ToolResult.ok(data, formatted=formatted)

    async def list_dir(self, args: dict[str, Any]) -> ToolResult:
        check = sanitize_path(args.get("path"), self._workspace)
        if not check.ok:
            return ToolResult.fail(check.error.message)
        root = check.path
        recursive = bool(args.get("recursive", False))
        max_depth = int(args.get("maxDepth", 3))
        show_hidden = bool(args.get("showHidden", False))

        async def collect(path: str, prefix: str, depth: int) -> list[dict[str, Any]]:
            entries = await self._backend.list_dir(path)
            visible = [e for e in entries if show_hidden or not e.name.startswith(".")]
            visible.sort(key=lambda e: (not e.is_dir, e.name.casefold(), e.name))

            out: list[dict[str, Any]] = []
            for entry in visible:
                item_path = f"{prefix}/{entry.name}" if prefix else entry.name
                out.append({"name": entry.name, "path": item_path, "fullPath": entry.path, "isDir": entry.is_dir})
                if recursive and entry.is_dir and depth < max_depth:
                    out.extend(await collect(entry.path, item_path, depth + 1))
            return out

        try:
            files = await collect(root, "", 1)
        except Exception as e:  # noqa: BLE001
            return ToolResult.fail(f"Failed to list directory: {e}")

        formatted = json.dumps(
            {
                "type": "find-results",
                "pattern": "*",
                "path": display_path(root, self._workspace),
                "totalFiles": len(files),
                "files": files,
            },
            ensure_ascii=False,
        )
        return ToolResult.ok({"path": root, "entries": files, "total": len(files)}, formatted=formatted)

    async def read_file(self, args: dict[str, Any]) -> ToolResult:
        check = sanitize_path(args.get("path"), self._workspace)
        if not check.ok:
            return ToolResult.fail(check.error.message)
        path = check.path

        try:
            content = await self._backend.read_file_text(path)
        except Exception as e:  # noqa: BLE001
            return ToolResult.fail(f"Failed to read file: {e}")

        line_count = len(content.split("\n"))
        data = {
            "path": path,
            "content": content,
            "lines": line_count,
            "size": len(content.encode("utf-8")),
        }
        formatted = f"📄 {self._relative(path)} ({line_count} lines)\n```\n{content}\n```"
        return ToolResult.ok(data, formatted=formatted)

    async def file_info(self, args: dict[str, Any]) -> ToolResult:
        check = sanitize_path(args.get("path"), self._workspace)
        if not check.ok:
            return ToolResult.fail(check.error.message)
        path = check.path

        try:
            size = await self._backend.file_size(path)
        except Exception as e:  # noqa: BLE001
            return ToolResult.fail(f"Failed to get file info: {e}")

        name = path.rsplit("/", 1)[-1] or path
        size_text = format_file_size(size)
        data = {"path": path, "name": name, "size": size, "sizeFormatted": size_text}
        return ToolResult.ok(data, formatted=f"📄 {name}: {size_text}")
