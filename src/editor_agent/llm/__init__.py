"""Model transports (LangChain OpenAI-compat + scripted offline stub)."""

from __future__ import annotations

from .fake import ScriptedTransport
from .transport import AbortSignal, ModelStreamTransport

__all__ = [
    "AbortSignal",
    "ModelStreamTransport",
    "ScriptedTransport",
]
