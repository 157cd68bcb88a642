"""
OpenAI-compatible completion backend adapter.

Covers any server that implements /v1/chat/completions: LM Studio, vLLM,
llama.cpp server, text-generation-webui, or the hosted OpenAI API.
"""

import json
import logging
from typing import AsyncIterator, Optional

import httpx

from errors import CompletionError
from inference.base import (
    CompletionBackend,
    CompletionResponse,
    ToolCall,
    ToolResult,
    ToolSpec,
)

logger = logging.getLogger(__name__)


def _parse_tool_calls(raw_calls: list[dict]) -> list[ToolCall]:
    calls = []
    for i, tc in enumerate(raw_calls):
        fn = tc.get("function", {})
        call_id = tc.get("id") or f"call_{i}"
        arguments = fn.get("arguments") or "{}"
        if isinstance(arguments, dict):
            calls.append(ToolCall(id=call_id, name=fn.get("name", ""), input=arguments))
            continue
        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError as e:
            calls.append(ToolCall(
                id=call_id, name=fn.get("name", ""),
                parse_error=f"JSON parse error: {e}. Raw: {arguments[:200]}",
            ))
            continue
        calls.append(ToolCall(
            id=call_id, name=fn.get("name", ""),
            input=parsed if isinstance(parsed, dict) else {"value": parsed},
        ))
    return calls


class OpenAICompatBackend(CompletionBackend):
    """Backend adapter for OpenAI-compatible chat completion servers."""

    def __init__(self, base_url: str = "http://localhost:1234",
                 model: str = "local-model", api_key: str = "",
                 max_tokens: int = 2048, temperature: float = 0.7,
                 timeout: float = 120,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(model, max_tokens=max_tokens,
                         temperature=temperature, timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else None
        return httpx.AsyncClient(
            timeout=self.timeout, headers=headers, transport=self._transport
        )

    def _payload(self, messages: list[dict], tools: Optional[list[ToolSpec]]) -> dict:
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if tools:
            payload["tools"] = [t.to_openai() for t in tools]
        return payload

    # ── Chat Completion ──

    async def send_message(
        self,
        prompt: str,
        conversation_id: str,
        tools: Optional[list[ToolSpec]] = None,
        tool_results: Optional[list[ToolResult]] = None,
    ) -> CompletionResponse:
        """Non-streaming chat completion via /v1/chat/completions."""
        if tool_results:
            history = self.history(conversation_id)
            for result in tool_results:
                history.append({
                    "role": "tool",
                    "tool_call_id": result.call_id,
                    "content": result.content,
                })
        else:
            history = self._open_turn(conversation_id)
            history.append({"role": "user", "content": prompt})

        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{self.base_url}/v1/chat/completions",
                    json=self._payload(list(history), tools),
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            self._rollback_turn(conversation_id)
            logger.error("Completion request to %s failed: %s", self.base_url, e)
            raise CompletionError(f"Completion request failed: {e}") from e

        choice = (data.get("choices") or [{}])[0]
        message = choice.get("message") or {}
        content = message.get("content") or ""
        raw_calls = message.get("tool_calls") or []

        assistant = {"role": "assistant", "content": content}
        if raw_calls and not tool_results:
            assistant["tool_calls"] = raw_calls
        history.append(assistant)

        return CompletionResponse(
            content=content,
            tool_calls=_parse_tool_calls(raw_calls),
            stop_reason=choice.get("finish_reason"),
            raw=data,
        )

    async def send_message_stream(
        self,
        prompt: str,
        conversation_id: str,
        tools: Optional[list[ToolSpec]] = None,
    ) -> AsyncIterator[str]:
        """Streaming chat completion via /v1/chat/completions with SSE.

        Parses the server-sent events stream and yields each content delta.
        Whatever text arrived is kept in the history even if the consumer
        stops early.
        """
        history = self._open_turn(conversation_id)
        history.append({"role": "user", "content": prompt})
        payload = self._payload(list(history), tools)
        payload["stream"] = True

        parts: list[str] = []
        failed = False
        try:
            async with self._client() as client:
                async with client.stream(
                    "POST", f"{self.base_url}/v1/chat/completions", json=payload
                ) as resp:
                    resp.raise_for_status()
                    async for line in resp.aiter_lines():
                        if not line.startswith("data: "):
                            continue
                        data = line[6:]
                        if data.strip() == "[DONE]":
                            break
                        try:
                            chunk = json.loads(data)
                        except json.JSONDecodeError:
                            continue
                        delta = (chunk.get("choices") or [{}])[0].get("delta", {})
                        content = delta.get("content") or ""
                        if content:
                            parts.append(content)
                            yield content
        except httpx.HTTPError as e:
            failed = True
            self._rollback_turn(conversation_id)
            logger.error("Completion stream from %s failed: %s", self.base_url, e)
            raise CompletionError(f"Completion stream failed: {e}") from e
        finally:
            if not failed:
                history.append({"role": "assistant", "content": "".join(parts)})
