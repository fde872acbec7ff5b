from __future__ import annotations

from .errors import BackendError, ConfigError, EditorAgentError

__all__ = ["BackendError", "ConfigError", "EditorAgentError"]
