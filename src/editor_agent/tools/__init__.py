"""Workspace tools: parsing, sandboxing, execution and rate limiting."""

from __future__ import annotations

from .backend import FileAccessBackend, FileEntry, SearchFile, SearchMatch, SearchResult
from .definitions import BUILTIN_TOOLS, ArgSpec, ToolDefinition, ToolRegistry, validate_args
from .executor import ToolExecutor, format_file_size
from .local_backend import LocalFileBackend
from .markers import extract_markers, tool_error_marker, tool_result_marker, tool_results_message
from .parser import ToolCallParser, has_tool_calls, parse_tool_calls, replace_tool_calls
from .rate_limit import RateLimitConfig, RateLimitDecision, RateLimiter, RateLimitStatus
from .sandbox import PathCheck, SandboxError, SandboxViolation, sanitize_path
from .service import AgentToolService, ChunkOutcome, ResponseOutcome

__all__ = [
    "AgentToolService",
    "ArgSpec",
    "BUILTIN_TOOLS",
    "ChunkOutcome",
    "FileAccessBackend",
    "FileEntry",
    "LocalFileBackend",
    "PathCheck",
    "RateLimitConfig",
    "RateLimitDecision",
    "RateLimitStatus",
    "RateLimiter",
    "ResponseOutcome",
    "SandboxError",
    "SandboxViolation",
    "SearchFile",
    "SearchMatch",
    "SearchResult",
    "ToolCallParser",
    "ToolDefinition",
    "ToolExecutor",
    "ToolRegistry",
    "extract_markers",
    "format_file_size",
    "has_tool_calls",
    "parse_tool_calls",
    "replace_tool_calls",
    "sanitize_path",
    "tool_error_marker",
    "tool_result_marker",
    "tool_results_message",
    "validate_args",
]
