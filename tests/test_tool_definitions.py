from __future__ import annotations

from editor_agent.tools.definitions import ToolRegistry, missing_required, validate_args


def _grep():
    definition = ToolRegistry().resolve("grep")
    assert definition is not None
    return definition


def test_registry_resolves_aliases_case_insensitively() -> None:
    registry = ToolRegistry()
    assert registry.resolve("LS").name == "list_dir"
    assert registry.resolve("cat").name == "read_file"
    assert registry.resolve("findFile").name == "find_by_name"
    assert registry.resolve("rm") is None
    assert "Stat" in registry
    assert registry.normalize_name("SEARCH") == "grep"
    assert registry.normalize_name("Unknown") == "unknown"
    assert len(registry) == 5


def test_all_names_longest_first() -> None:
    names = ToolRegistry().all_names()
    assert len(names[0]) >= len(names[-1])
    assert names.index("find_by_name") < names.index("find")


def test_validate_fills_defaults_and_drops_unknown_keys() -> None:
    args = validate_args(_grep(), {"query": "needle", "bogus": 1})
    assert args == {
        "query": "needle",
        "path": ".",
        "caseSensitive": False,
        "wholeWord": False,
        "regex": False,
        "includePattern": "",
        "excludePattern": "",
        "maxResults": 100,
    }


def test_validate_rejects_missing_required() -> None:
    assert validate_args(_grep(), {"path": "src"}) is None
    assert missing_required(_grep(), {"path": "src"}) == ["query"]


def test_numbers_are_clamped_and_parsed_leniently() -> None:
    assert validate_args(_grep(), {"query": "q", "maxResults": "1000"})["maxResults"] == 500
    assert validate_args(_grep(), {"query": "q", "maxResults": 0})["maxResults"] == 1
    assert validate_args(_grep(), {"query": "q", "maxResults": "12abc"})["maxResults"] == 12
    assert validate_args(_grep(), {"query": "q", "maxResults": 7.9})["maxResults"] == 7


def test_invalid_optional_number_falls_back_to_default() -> None:
    assert validate_args(_grep(), {"query": "q", "maxResults": "lots"})["maxResults"] == 100
    assert validate_args(_grep(), {"query": "q", "maxResults": True})["maxResults"] == 100


def test_booleans_from_strings() -> None:
    args = validate_args(_grep(), {"query": "q", "caseSensitive": "yes", "regex": "no", "wholeWord": 1})
    assert args["caseSensitive"] is True
    assert args["regex"] is False
    assert args["wholeWord"] is True


def test_strings_are_coerced_and_truncated() -> None:
    args = validate_args(_grep(), {"query": "x" * 2000, "path": 5})
    assert len(args["query"]) == 1000
    assert args["path"] == "5"
