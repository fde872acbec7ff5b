from __future__ import annotations


class EditorAgentError(Exception):
    """Base exception for this project."""


class ConfigError(EditorAgentError):
    """Raised when configuration is invalid or incomplete."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class BackendError(EditorAgentError):
    """Raised by a file-access backend for failures that are not plain I/O errors."""
