"""Workspace path sandbox.

`sanitize_path` is pure: no file-system access, no exceptions. Every tool that
touches the file system runs its path arguments through it first.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum

BLOCKED_PATH_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(^|[/\\])\.\.([/\\]|$)"),
    re.compile(r"^/etc/", re.IGNORECASE),
    re.compile(r"^/var/", re.IGNORECASE),
    re.compile(r"^/root/", re.IGNORECASE),
    re.compile(r"^/proc/", re.IGNORECASE),
    re.compile(r"^/sys/", re.IGNORECASE),
    re.compile(r"^/dev/", re.IGNORECASE),
    re.compile(r"^/boot/", re.IGNORECASE),
    re.compile(r"^/bin/", re.IGNORECASE),
    re.compile(r"^/sbin/", re.IGNORECASE),
    re.compile(r"^/lib/", re.IGNORECASE),
    re.compile(r"^~/\.\w+"),
)

ALLOWED_ABSOLUTE_PREFIXES: tuple[str, ...] = ("/home", "/Users", "/usr", "/tmp")

_MULTI_SLASH_RE = re.compile(r"/+")


class SandboxViolation(str, Enum):
    INVALID = "invalid"
    BLOCKED = "blocked"
    OUTSIDE_BOUNDARY = "outside_boundary"


@dataclass(frozen=True, slots=True)
class SandboxError:
    kind: SandboxViolation
    message: str


@dataclass(frozen=True, slots=True)
class PathCheck:
    path: str | None = None
    error: SandboxError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def normalize_path(path: str) -> str:
    """Resolve `.` and `..` segments lexically and return an absolute path."""

    stack: list[str] = []
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if stack:
                stack.pop()
        else:
            stack.append(part)
    return "/" + "/".join(stack)


def resolve_root(workspace_root: str) -> str:
    """Absolute, normalized workspace root; relative roots resolve against the cwd."""

    return normalize_path(os.path.abspath(workspace_root).replace("\\", "/"))


def _is_under(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/") or "/"
    if prefix == "/":
        return True
    return path == prefix or path.startswith(prefix + "/")


def _is_allowed_absolute(path: str) -> bool:
    return any(_is_under(path, prefix) for prefix in ALLOWED_ABSOLUTE_PREFIXES)


def sanitize_path(requested: object, workspace_root: str) -> PathCheck:
    if not isinstance(requested, str) or not requested.strip():
        return PathCheck(
            error=SandboxError(SandboxViolation.INVALID, "Invalid path: path must be a non-empty string")
        )

    clean = requested.strip()
    for pattern in BLOCKED_PATH_PATTERNS:
        if pattern.search(clean):
            return PathCheck(
                error=SandboxError(SandboxViolation.BLOCKED, "Access denied: path contains blocked pattern")
            )

    clean = _MULTI_SLASH_RE.sub("/", clean)
    root = normalize_path(workspace_root)

    # Absolute paths already inside the workspace are kept as they are.
    if clean.startswith("/") and not _is_allowed_absolute(clean) and not _is_under(clean, root):
        clean = clean[1:]

    full = clean if clean.startswith("/") else f"{root}/{clean}"
    normalized = normalize_path(full)

    if not _is_under(normalized, root) and not _is_allowed_absolute(normalized):
        return PathCheck(
            error=SandboxError(
                SandboxViolation.OUTSIDE_BOUNDARY, "Access denied: path is outside allowed directories"
            )
        )

    return PathCheck(path=normalized)


def relative_path(path: str, workspace_root: str) -> str:
    """Path relative to the workspace root; paths outside it are returned unchanged."""

    root = normalize_path(workspace_root)
    if path == root:
        return "."
    if root != "/" and path.startswith(root + "/"):
        return path[len(root) + 1 :]
    return path


def display_path(path: str, workspace_root: str) -> str:
    """Workspace-relative path for display, with the root rendered as `~`."""

    root = normalize_path(workspace_root)
    if path == root:
        return "~"
    if root != "/" and path.startswith(root + "/"):
        return "~" + path[len(root) :]
    return path
