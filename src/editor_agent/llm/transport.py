from __future__ import annotations

import threading
from typing import AsyncIterator, Protocol, Sequence

from editor_agent.core.types import ConversationTurn


class AbortSignal:
    """Cooperative cancellation flag shared between the loop and its caller.

    Backed by a `threading.Event` so a UI thread can abort a loop running in
    another thread's event loop.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def abort(self) -> None:
        self._event.set()

    @property
    def aborted(self) -> bool:
        return self._event.is_set()


class ModelStreamTransport(Protocol):
    def stream_chat(
        self,
        model_id: str,
        turns: Sequence[ConversationTurn],
        signal: AbortSignal,
    ) -> AsyncIterator[str]:
        """Yield text chunks; stops early once `signal` is aborted."""
        ...

    async def complete_chat(self, model_id: str, turns: Sequence[ConversationTurn]) -> str: ...
