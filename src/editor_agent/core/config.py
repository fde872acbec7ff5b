from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .errors import ConfigError

__all__ = [
    "AgentConfig",
    "AppConfig",
    "ConfigError",
    "LlmConfig",
    "LoggingConfig",
    "RateLimitConfig",
    "WorkspaceConfig",
    "load_config",
]


_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")
_MODES = frozenset({"agent", "responder"})


def _expand_env_in_str(value: str, *, path: str) -> str:
    def repl(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in os.environ or os.environ[key] == "":
            raise ConfigError(f"environment variable {key!r} is not set", path=path)
        return os.environ[key]

    return _ENV_PATTERN.sub(repl, value)


def _expand_env(obj: Any, *, path: str) -> Any:
    if isinstance(obj, str):
        return _expand_env_in_str(obj, path=path)
    if isinstance(obj, list):
        return [_expand_env(v, path=path) for v in obj]
    if isinstance(obj, dict):
        return {k: _expand_env(v, path=f"{path}.{k}" if path else str(k)) for k, v in obj.items()}
    return obj


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError("must be a mapping", path=key)
    return value


def _positive_int(d: dict[str, Any], key: str, default: int, *, path: str, minimum: int = 1) -> int:
    value = d.get(key, default)
    try:
        out = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError("must be an integer", path=f"{path}.{key}") from e
    if out < minimum:
        raise ConfigError(f"must be an integer >= {minimum}", path=f"{path}.{key}")
    return out


def _positive_float(d: dict[str, Any], key: str, default: float, *, path: str) -> float:
    value = d.get(key, default)
    if isinstance(value, bool):
        raise ConfigError("must be a number", path=f"{path}.{key}")
    try:
        out = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError("must be a number", path=f"{path}.{key}") from e
    if not out > 0:
        raise ConfigError("must be a number > 0", path=f"{path}.{key}")
    return out


@dataclass(frozen=True)
class LlmConfig:
    api_key: str
    base_url: str | None = None
    model: str = "gpt-4o-mini"
    timeout_s: float = 60.0
    max_retries: int = 2


@dataclass(frozen=True)
class WorkspaceConfig:
    root: str | None = None


@dataclass(frozen=True)
class AgentConfig:
    max_iterations: int = 10
    mode: str = "agent"
    user_os: str = "linux"


@dataclass(frozen=True)
class RateLimitConfig:
    max_calls_per_minute: int = 30
    max_calls_per_session: int = 100
    cooldown_ms: int = 2000


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
    llm: LlmConfig
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path) -> AppConfig:
    """Load YAML config and expand ${ENV_VAR}."""

    # Local dev: allow injecting secrets from .env (do not commit it).
    load_dotenv(override=False)

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError("config file does not exist", path=str(config_path))

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except Exception as e:  # noqa: BLE001
        raise ConfigError(f"YAML parse failed: {e}", path=str(config_path)) from e

    if not isinstance(raw, dict):
        raise ConfigError("top level must be a YAML mapping", path=str(config_path))

    expanded = _expand_env(raw, path="")

    llm_raw = _section(expanded, "llm")
    api_key = llm_raw.get("api_key")
    if api_key is None or api_key == "":
        api_key = os.getenv("OPENAI_API_KEY")
    if not isinstance(api_key, str) or not api_key.strip():
        raise ConfigError("must be a non-empty string (or set OPENAI_API_KEY)", path="llm.api_key")

    base_url = llm_raw.get("base_url")
    llm = LlmConfig(
        api_key=api_key,
        base_url=str(base_url) if base_url else None,
        model=str(llm_raw.get("model", LlmConfig.model)),
        timeout_s=_positive_float(llm_raw, "timeout_s", LlmConfig.timeout_s, path="llm"),
        max_retries=_positive_int(llm_raw, "max_retries", LlmConfig.max_retries, path="llm", minimum=0),
    )

    ws_raw = _section(expanded, "workspace")
    root = ws_raw.get("root")
    if root is not None and (not isinstance(root, str) or not root.strip()):
        raise ConfigError("must be a non-empty string", path="workspace.root")
    workspace = WorkspaceConfig(root=root)

    agent_raw = _section(expanded, "agent")
    mode = str(agent_raw.get("mode", AgentConfig.mode))
    if mode not in _MODES:
        raise ConfigError(f"unsupported mode: {mode!r}", path="agent.mode")
    agent = AgentConfig(
        max_iterations=_positive_int(agent_raw, "max_iterations", AgentConfig.max_iterations, path="agent"),
        mode=mode,
        user_os=str(agent_raw.get("user_os", AgentConfig.user_os)),
    )

    rl_raw = _section(expanded, "rate_limit")
    rate_limit = RateLimitConfig(
        max_calls_per_minute=_positive_int(
            rl_raw, "max_calls_per_minute", RateLimitConfig.max_calls_per_minute, path="rate_limit"
        ),
        max_calls_per_session=_positive_int(
            rl_raw, "max_calls_per_session", RateLimitConfig.max_calls_per_session, path="rate_limit"
        ),
        cooldown_ms=_positive_int(rl_raw, "cooldown_ms", RateLimitConfig.cooldown_ms, path="rate_limit", minimum=0),
    )

    log_raw = _section(expanded, "logging")
    logging_cfg = LoggingConfig(level=str(log_raw.get("level", LoggingConfig.level)).upper())

    return AppConfig(llm=llm, workspace=workspace, agent=agent, rate_limit=rate_limit, logging=logging_cfg)
