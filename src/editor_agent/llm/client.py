"""OpenAI-compatible chat transport.

Uses LangChain's OpenAI wrapper (`langchain_openai.ChatOpenAI`). Any provider
exposing the OpenAI chat-completions API works through `base_url`.
"""

from __future__ import annotations

from typing import AsyncIterator, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from editor_agent.core.config import LlmConfig
from editor_agent.core.types import ConversationTurn

from .transport import AbortSignal


def to_langchain_messages(turns: Sequence[ConversationTurn]) -> list[BaseMessage]:
    out: list[BaseMessage] = []
    for turn in turns:
        if turn.role == "system":
            out.append(SystemMessage(content=turn.content))
        elif turn.role == "assistant":
            out.append(AIMessage(content=turn.content))
        else:
            out.append(HumanMessage(content=turn.content))
    return out


class LangChainChatTransport:
    """`ModelStreamTransport` over `ChatOpenAI`, one client per model id."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str | None = None,
        timeout_s: float = 60,
        max_retries: int = 2,
    ) -> None:
        self._api_key = SecretStr(api_key)
        self._base_url = base_url
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._models: dict[tuple[str, bool], ChatOpenAI] = {}

    @classmethod
    def from_config(cls, cfg: LlmConfig) -> "LangChainChatTransport":
        return cls(
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            timeout_s=cfg.timeout_s,
            max_retries=cfg.max_retries,
        )

    def _model(self, model_id: str, *, streaming: bool) -> ChatOpenAI:
        key = (model_id, streaming)
        model = self._models.get(key)
        if model is None:
            model = ChatOpenAI(
                model=model_id,
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout_s,
                max_retries=self._max_retries,
                streaming=streaming,
            )
            self._models[key] = model
        return model

    async def stream_chat(
        self,
        model_id: str,
        turns: Sequence[ConversationTurn],
        signal: AbortSignal,
    ) -> AsyncIterator[str]:
        model = self._model(model_id, streaming=True)
        async for chunk in model.astream(to_langchain_messages(turns)):
            if signal.aborted:
                return
            # LangChain streams AIMessageChunk objects.
            content = getattr(chunk, "content", None)
            if isinstance(content, str) and content:
                yield content

    async def complete_chat(self, model_id: str, turns: Sequence[ConversationTurn]) -> str:
        model = self._model(model_id, streaming=False)
        message = await model.ainvoke(to_langchain_messages(turns))
        content = getattr(message, "content", "")
        return content if isinstance(content, str) else ""
