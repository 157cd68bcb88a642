"""
Abstract base class for completion backend adapters.

Every adapter (OpenAI-compatible, Anthropic) implements this interface so
personas can talk to any model provider the same way. Adapters keep the
per-conversation message history keyed by conversation id.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolSpec:
    """A tool a persona exposes to the model: name, description, JSON schema."""
    name: str
    description: str
    input_schema: dict = field(default_factory=lambda: {"type": "object", "properties": {}})

    def to_openai(self) -> dict:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }

    def to_anthropic(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""
    id: str
    name: str
    input: dict = field(default_factory=dict)
    parse_error: Optional[str] = None


@dataclass
class ToolResult:
    """The serialized outcome of one ToolCall, keyed by its call id."""
    call_id: str
    content: str
    is_error: bool = False

    def to_dict(self) -> dict:
        return {"tool_use_id": self.call_id, "type": "tool_result", "content": self.content}


@dataclass
class CompletionResponse:
    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    stop_reason: Optional[str] = None
    raw: Any = None

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)


def serialize_tool_results(results: list[ToolResult]) -> str:
    """Render tool results as a JSON prompt for backends without native tool turns."""
    return json.dumps([r.to_dict() for r in results])


class CompletionBackend(ABC):
    """Abstract completion backend interface.

    Adapters translate between the provider wire format and the neutral
    CompletionResponse / ToolCall / ToolResult types.
    """

    def __init__(self, model: str, max_tokens: int = 2048,
                 temperature: float = 0.7, timeout: float = 120):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._histories: dict[str, list[dict]] = {}
        self._turn_starts: dict[str, int] = {}

    # ── Conversation History ──

    def history(self, conversation_id: str) -> list[dict]:
        """Provider-format message history for a conversation (created on demand)."""
        return self._histories.setdefault(conversation_id, [])

    def reset_conversation(self, conversation_id: str):
        """Drop the stored history for a conversation."""
        self._histories.pop(conversation_id, None)
        self._turn_starts.pop(conversation_id, None)

    def _open_turn(self, conversation_id: str) -> list[dict]:
        """Mark where a new user turn starts and return the history."""
        history = self.history(conversation_id)
        self._turn_starts[conversation_id] = len(history)
        return history

    def _rollback_turn(self, conversation_id: str):
        """Drop everything the current user turn added, tool rounds included."""
        history = self.history(conversation_id)
        del history[self._turn_starts.pop(conversation_id, len(history)):]

    # ── Completion ──

    @abstractmethod
    async def send_message(
        self,
        prompt: str,
        conversation_id: str,
        tools: Optional[list[ToolSpec]] = None,
        tool_results: Optional[list[ToolResult]] = None,
    ) -> CompletionResponse:
        """Single request/response completion.

        Args:
            prompt: User-turn text. Ignored when tool_results is given.
            conversation_id: Key of the history this turn extends.
            tools: Optional tool manifest the model may call.
            tool_results: Results answering the previous response's tool calls.
                Tool calls in the answer to tool results are returned but not
                kept in the history, since no further round will answer them.

        Returns:
            CompletionResponse with text and/or tool calls.

        Raises:
            CompletionError: the provider call failed.
        """
        ...

    @abstractmethod
    def send_message_stream(
        self,
        prompt: str,
        conversation_id: str,
        tools: Optional[list[ToolSpec]] = None,
    ) -> AsyncIterator[str]:
        """Streaming completion. Yields text deltas in arrival order.

        Raises:
            CompletionError: the provider call or the stream failed.
        """
        ...
