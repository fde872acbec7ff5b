from __future__ import annotations

import os
from pathlib import Path

import pytest

from editor_agent.tools.sandbox import (
    SandboxViolation,
    display_path,
    normalize_path,
    relative_path,
    resolve_root,
    sanitize_path,
)

ROOT = "/workspace/proj"


def test_relative_path_resolves_under_workspace() -> None:
    check = sanitize_path("src/app.py", ROOT)
    assert check.ok
    assert check.path == "/workspace/proj/src/app.py"


def test_dot_is_workspace_root() -> None:
    assert sanitize_path(".", ROOT).path == ROOT


@pytest.mark.parametrize("requested", [None, "", "   ", 42])
def test_invalid_path(requested: object) -> None:
    check = sanitize_path(requested, ROOT)
    assert not check.ok
    assert check.error is not None
    assert check.error.kind is SandboxViolation.INVALID
    assert check.error.message == "Invalid path: path must be a non-empty string"


@pytest.mark.parametrize(
    "requested",
    ["../etc/passwd", "src/../../secret", "..", "/etc/passwd", "/proc/self/environ", "~/.ssh/id_rsa"],
)
def test_blocked_patterns(requested: str) -> None:
    check = sanitize_path(requested, ROOT)
    assert check.error is not None
    assert check.error.kind is SandboxViolation.BLOCKED
    assert check.error.message == "Access denied: path contains blocked pattern"


def test_double_dot_inside_a_name_is_not_traversal() -> None:
    assert sanitize_path("notes..md", ROOT).path == "/workspace/proj/notes..md"


def test_allowed_absolute_prefix_is_kept() -> None:
    assert sanitize_path("/tmp/scratch.txt", ROOT).path == "/tmp/scratch.txt"


def test_absolute_path_inside_workspace_is_kept() -> None:
    assert sanitize_path("/workspace/proj/src", ROOT).path == "/workspace/proj/src"


def test_other_absolute_path_is_demoted_to_workspace_relative() -> None:
    assert sanitize_path("/opt/thing", ROOT).path == "/workspace/proj/opt/thing"


def test_duplicate_slashes_and_dots_are_normalized() -> None:
    assert sanitize_path("src//lib/./a.ts", ROOT).path == "/workspace/proj/src/lib/a.ts"


def test_normalize_path() -> None:
    assert normalize_path("/a/b/../c/./d") == "/a/c/d"
    assert normalize_path("/../..") == "/"


def test_relative_and_display_paths() -> None:
    assert relative_path(ROOT, ROOT) == "."
    assert relative_path("/workspace/proj/src/a.ts", ROOT) == "src/a.ts"
    assert relative_path("/tmp/x", ROOT) == "/tmp/x"
    assert display_path(ROOT, ROOT) == "~"
    assert display_path("/workspace/proj/src", ROOT) == "~/src"


def test_relative_workspace_root_resolves_against_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "proj").mkdir()
    monkeypatch.chdir(tmp_path)
    cwd = os.getcwd()

    assert resolve_root(".") == cwd
    assert resolve_root("proj") == f"{cwd}/proj"
    assert resolve_root("proj/../proj/") == f"{cwd}/proj"
    assert resolve_root(ROOT) == ROOT
