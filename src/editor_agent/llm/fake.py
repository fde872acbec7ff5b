from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator, Callable, Sequence

from editor_agent.core.types import ConversationTurn

from .transport import AbortSignal


@dataclass(frozen=True, slots=True)
class RecordedCall:
    model_id: str
    turns: tuple[ConversationTurn, ...]


class ScriptedTransport:
    """Offline transport replaying canned responses, one per `stream_chat` call.

    Each response is a list of chunks or a plain string (sent as one chunk).
    Once the script is exhausted the last response repeats. `before_chunk` is
    invoked with (call_index, chunk_index) before each chunk is yielded; tests
    use it to abort or fail mid-stream.
    """

    def __init__(
        self,
        responses: Sequence[str | Sequence[str]] = ("(fake) hello!",),
        *,
        title: str = "Fake Conversation",
        before_chunk: Callable[[int, int], None] | None = None,
    ) -> None:
        self._responses = [[r] if isinstance(r, str) else list(r) for r in responses]
        self._title = title
        self._before_chunk = before_chunk
        self.calls: list[RecordedCall] = []
        self.completions: list[RecordedCall] = []

    async def stream_chat(
        self,
        model_id: str,
        turns: Sequence[ConversationTurn],
        signal: AbortSignal,
    ) -> AsyncIterator[str]:
        index = len(self.calls)
        self.calls.append(RecordedCall(model_id, tuple(turns)))
        chunks = self._responses[min(index, len(self._responses) - 1)] if self._responses else []
        for i, chunk in enumerate(chunks):
            if self._before_chunk:
                self._before_chunk(index, i)
            if signal.aborted:
                return
            yield chunk

    async def complete_chat(self, model_id: str, turns: Sequence[ConversationTurn]) -> str:
        self.completions.append(RecordedCall(model_id, tuple(turns)))
        return self._title
