"""Run the agent from a source checkout, e.g. `python main.py --fake --text "hi"`."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from editor_agent.core.cli import main  # noqa: E402

if __name__ == "__main__":
    raise SystemExit(main())
