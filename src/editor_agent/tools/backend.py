"""File-access capability consumed by the tool executor.

The editor host owns the real file system, git and process work; the executor
only depends on this protocol. `LocalFileBackend` is the in-process default.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True, slots=True)
class SearchFile:
    name: str
    path: str


@dataclass(frozen=True, slots=True)
class SearchMatch:
    line: int
    char_start: int
    char_end: int
    line_text: str


@dataclass(frozen=True, slots=True)
class SearchResult:
    file: SearchFile
    matches: list[SearchMatch] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class FileEntry:
    name: str
    path: str
    is_dir: bool
    children: list["FileEntry"] | None = None


class FileAccessBackend(Protocol):
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
    ) -> list[SearchResult]: ...

    async def list_tree(self, root_path: str) -> list[FileEntry]: ...

    async def list_dir(self, path: str) -> list[FileEntry]: ...

    async def read_file_text(self, path: str) -> str: ...

    async def file_size(self, path: str) -> int: ...
