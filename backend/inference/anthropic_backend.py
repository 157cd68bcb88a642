"""
Anthropic Messages API backend adapter.
"""

import logging
from typing import AsyncIterator, Optional

import anthropic
from anthropic import AsyncAnthropic

from errors import CompletionError
from inference.base import (
    CompletionBackend,
    CompletionResponse,
    ToolCall,
    ToolResult,
    ToolSpec,
)

logger = logging.getLogger(__name__)


class AnthropicBackend(CompletionBackend):
    """Backend adapter for the Anthropic Messages API via the official SDK."""

    def __init__(self, model: str, api_key: str = "", base_url: str = "",
                 max_tokens: int = 2048, temperature: float = 0.7,
                 timeout: float = 120, client: Optional[AsyncAnthropic] = None):
        super().__init__(model, max_tokens=max_tokens,
                         temperature=temperature, timeout=timeout)
        self._api_key = api_key
        self._base_url = base_url
        self._client = client

    @property
    def client(self) -> AsyncAnthropic:
        if self._client is None:
            self._client = AsyncAnthropic(
                api_key=self._api_key or None,
                base_url=self._base_url or None,
                timeout=self.timeout,
            )
        return self._client

    def _request(self, messages: list[dict], tools: Optional[list[ToolSpec]]) -> dict:
        kwargs = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": messages,
        }
        if tools:
            kwargs["tools"] = [t.to_anthropic() for t in tools]
        return kwargs

    async def send_message(
        self,
        prompt: str,
        conversation_id: str,
        tools: Optional[list[ToolSpec]] = None,
        tool_results: Optional[list[ToolResult]] = None,
    ) -> CompletionResponse:
        if tool_results:
            history = self.history(conversation_id)
            history.append({
                "role": "user",
                "content": [
                    {
                        "type": "tool_result",
                        "tool_use_id": r.call_id,
                        "content": r.content,
                        "is_error": r.is_error,
                    }
                    for r in tool_results
                ],
            })
        else:
            history = self._open_turn(conversation_id)
            history.append({"role": "user", "content": prompt})

        try:
            response = await self.client.messages.create(**self._request(list(history), tools))
        except anthropic.APIError as e:
            self._rollback_turn(conversation_id)
            logger.error("Anthropic request failed: %s", e)
            raise CompletionError(f"Completion request failed: {e}") from e

        kept = response.content
        if tool_results:
            # No round answers these, so tool_use blocks are not kept.
            kept = [b for b in response.content if b.type == "text"]
        if kept:
            history.append({"role": "assistant", "content": kept})
        text = "".join(b.text for b in response.content if b.type == "text")
        calls = [
            ToolCall(id=b.id, name=b.name, input=dict(b.input or {}))
            for b in response.content if b.type == "tool_use"
        ]
        return CompletionResponse(
            content=text, tool_calls=calls,
            stop_reason=response.stop_reason, raw=response,
        )

    async def send_message_stream(
        self,
        prompt: str,
        conversation_id: str,
        tools: Optional[list[ToolSpec]] = None,
    ) -> AsyncIterator[str]:
        history = self._open_turn(conversation_id)
        history.append({"role": "user", "content": prompt})

        parts: list[str] = []
        failed = False
        try:
            async with self.client.messages.stream(
                **self._request(list(history), tools)
            ) as stream:
                async for text in stream.text_stream:
                    parts.append(text)
                    yield text
        except anthropic.APIError as e:
            failed = True
            self._rollback_turn(conversation_id)
            logger.error("Anthropic stream failed: %s", e)
            raise CompletionError(f"Completion stream failed: {e}") from e
        finally:
            # Empty assistant turns are rejected by the API.
            if not failed and parts:
                history.append({"role": "assistant", "content": "".join(parts)})
