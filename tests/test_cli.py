from __future__ import annotations

from pathlib import Path

import pytest

from editor_agent.core import cli


def test_cli_fake_run(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    # Keep the global JSON handler away from pytest's capture streams.
    monkeypatch.setattr(cli, "configure_logging", lambda **_: None)

    config = tmp_path / "app.yaml"
    config.write_text("llm:\n  api_key: k_test\n", encoding="utf-8")
    (tmp_path / "notes.md").write_text("todo", encoding="utf-8")

    code = cli.main(["--config", str(config), "--fake", "--workspace", str(tmp_path), "--text", "hi"])

    assert code == 0
    out = capsys.readouterr().out
    assert "[[TOOL_RESULT:list_dir:" in out
    assert "notes.md" in out
    assert "(fake) The workspace listing is above." in out


def test_cli_dot_workspace_lists_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda **_: None)
    config = tmp_path / "app.yaml"
    config.write_text("llm:\n  api_key: k_test\n", encoding="utf-8")
    (tmp_path / "proj").mkdir()
    (tmp_path / "proj" / "only_here.md").write_text("x", encoding="utf-8")
    monkeypatch.chdir(tmp_path / "proj")

    assert cli.main(["--config", str(config), "--fake", "--workspace", ".", "--text", "hi"]) == 0

    out = capsys.readouterr().out
    listing = out.split("[[TOOL_RESULT:list_dir:", 1)[1].split("]]", 1)[0]
    assert "only_here.md" in listing
    assert "app.yaml" not in listing
