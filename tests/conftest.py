from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    root = Path(__file__).resolve().parents[1]
    src = root / "src"
    if src.exists():
        sys.path.insert(0, str(src))


@pytest.fixture()
def workspace(tmp_path: Path) -> Path:
    """A small project tree:

        .hidden
        a.ts
        a.tsx
        node_modules/dep.tsx
        sub/b.tsx
    """

    (tmp_path / "a.tsx").write_text("const [x, setX] = useState(0);\n", encoding="utf-8")
    (tmp_path / "a.ts").write_text("export const y = 1;\nexport const z = 2;", encoding="utf-8")
    (tmp_path / ".hidden").write_text("secret", encoding="utf-8")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.tsx").write_text("useState\nconst v = useState again\n", encoding="utf-8")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "dep.tsx").write_text("useState\n", encoding="utf-8")
    return tmp_path
