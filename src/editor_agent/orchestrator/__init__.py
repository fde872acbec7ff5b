"""Agent loop orchestration."""

from __future__ import annotations

from .agent_loop import AgentLoopController, AgentMode, LoopOutcome, LoopState, fallback_title
from .prompts import generate_system_prompt, tools_description

__all__ = [
    "AgentLoopController",
    "AgentMode",
    "LoopOutcome",
    "LoopState",
    "fallback_title",
    "generate_system_prompt",
    "tools_description",
]
