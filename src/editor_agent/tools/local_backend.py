from __future__ import annotations

import asyncio
import fnmatch
import os
import re
from pathlib import Path

from editor_agent.core.errors import BackendError

from .backend import FileEntry, SearchFile, SearchMatch, SearchResult

IGNORED_DIRS = frozenset({"node_modules", ".git", "dist", "build", "target", ".vscode"})
MAX_LINE_TEXT = 400


def _split_globs(patterns_csv: str) -> list[str]:
    return [p.strip() for p in (patterns_csv or "").split(",") if p.strip()]


def _glob_match(path: str, root: str, patterns: list[str]) -> bool:
    """Match against the root-relative path, the base name, or the full path."""

    candidates = (os.path.relpath(path, root), os.path.basename(path), path)
    return any(fnmatch.fnmatch(c, p) for p in patterns for c in candidates)


def build_search_regex(
    query: str, *, case_sensitive: bool, whole_word: bool, regex: bool
) -> re.Pattern[str]:
    if not query.strip():
        raise BackendError("Empty query")

    pattern = query if regex else re.escape(query)
    if whole_word:
        pattern = rf"\b{pattern}\b"

    flags = re.MULTILINE
    if not case_sensitive:
        flags |= re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise BackendError(f"Invalid regex: {e}") from e


def _sort_entries(entries: list[FileEntry]) -> list[FileEntry]:
    return sorted(entries, key=lambda e: (not e.is_dir, e.name.casefold(), e.name))


class LocalFileBackend:
    """`FileAccessBackend` over the local file system.

    Blocking work runs in a worker thread so the event loop stays free.
    """

    async def search_text(
        self,
        root_path: str,
        query: str,
        *,
        case_sensitive: bool = False,
        whole_word: bool = False,
        regex: bool = False,
        include_glob: str = "",
        exclude_glob: str = "",
    ) -> list[SearchResult]:
        return await asyncio.to_thread(
            self._search_text_sync,
            root_path,
            query,
            case_sensitive,
            whole_word,
            regex,
            include_glob,
            exclude_glob,
        )

    def _search_text_sync(
        self,
        root_path: str,
        query: str,
        case_sensitive: bool,
        whole_word: bool,
        regex: bool,
        include_glob: str,
        exclude_glob: str,
    ) -> list[SearchResult]:
        pattern = build_search_regex(query, case_sensitive=case_sensitive, whole_word=whole_word, regex=regex)
        include = _split_globs(include_glob)
        exclude = _split_globs(exclude_glob)

        results: list[SearchResult] = []
        for path in self._walk_files(root_path):
            if exclude and _glob_match(path, root_path, exclude):
                continue
            if include and not _glob_match(path, root_path, include):
                continue

            try:
                content = Path(path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue

            matches: list[SearchMatch] = []
            for idx, line in enumerate(content.splitlines()):
                for m in pattern.finditer(line):
                    line_text = line if len(line) <= MAX_LINE_TEXT else line[:MAX_LINE_TEXT] + "..."
                    matches.append(
                        SearchMatch(line=idx + 1, char_start=m.start(), char_end=m.end(), line_text=line_text)
                    )

            if matches:
                results.append(SearchResult(file=SearchFile(name=os.path.basename(path), path=path), matches=matches))

        return results

    @staticmethod
    def _walk_files(root_path: str) -> list[str]:
        if os.path.isfile(root_path):
            return [root_path]
        if not os.path.isdir(root_path):
            raise BackendError(f"Not a directory: {root_path}")

        files: list[str] = []
        for dirpath, dirnames, filenames in os.walk(root_path):
            dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
            for filename in sorted(filenames):
                files.append(os.path.join(dirpath, filename))
        return files

    async def list_tree(self, root_path: str) -> list[FileEntry]:
        return await asyncio.to_thread(self._list_tree_sync, root_path)

    def _list_tree_sync(self, root_path: str) -> list[FileEntry]:
        if not os.path.isdir(root_path):
            raise BackendError(f"Not a directory: {root_path}")

        entries: list[FileEntry] = []
        for entry in self._scan(root_path):
            if entry.is_dir:
                if entry.name in IGNORED_DIRS:
                    continue
                entry = FileEntry(entry.name, entry.path, True, self._list_tree_sync(entry.path))
            entries.append(entry)
        return _sort_entries(entries)

    async def list_dir(self, path: str) -> list[FileEntry]:
        return await asyncio.to_thread(self._list_dir_sync, path)

    def _list_dir_sync(self, path: str) -> list[FileEntry]:
        if not os.path.isdir(path):
            raise BackendError(f"Not a directory: {path}")
        return _sort_entries(self._scan(path))

    @staticmethod
    def _scan(path: str) -> list[FileEntry]:
        with os.scandir(path) as it:
            return [
                FileEntry(name=e.name, path=os.path.join(path, e.name), is_dir=e.is_dir(follow_symlinks=False))
                for e in it
            ]

    async def read_file_text(self, path: str) -> str:
        return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")

    async def file_size(self, path: str) -> int:
        return await asyncio.to_thread(os.path.getsize, path)
