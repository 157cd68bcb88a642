"""
Conversation state — messages, the active-agent pointer, and the store
that owns every live conversation.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from config import COLLABORATION_QUEUE_SIZE
from core.collaboration import CollaborationQueue
from errors import ConversationNotFoundError


@dataclass(frozen=True)
class MessageMetadata:
    mood: str = "neutral"
    confidence: float = 0.8
    suggested_next_agent: Optional[str] = None
    tools_used: tuple[str, ...] = ()
    memory_accessed: bool = False

    def to_dict(self) -> dict:
        return {
            "mood": self.mood,
            "confidence": self.confidence,
            "suggested_next_agent": self.suggested_next_agent,
            "tools_used": list(self.tools_used),
            "memory_accessed": self.memory_accessed,
        }


@dataclass(frozen=True)
class Message:
    role: str  # "user" | "assistant"
    content: str
    agent_id: str
    timestamp: float
    metadata: Optional[MessageMetadata] = None

    def to_dict(self) -> dict:
        return {
            "role": self.role,
            "content": self.content,
            "agent_id": self.agent_id,
            "timestamp": self.timestamp,
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }


@dataclass
class Conversation:
    id: str
    active_agent_id: str
    created_at: float
    updated_at: float
    messages: list[Message] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)
    suggestions: CollaborationQueue = field(default_factory=CollaborationQueue)

    def append(self, message: Message):
        self.messages.append(message)

    def history(self) -> list[Message]:
        return list(self.messages)

    def clear(self):
        """Wipe history and context. Id, active agent and suggestions persist."""
        self.messages.clear()
        self.context.clear()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "active_agent_id": self.active_agent_id,
            "message_count": len(self.messages),
            "context_keys": sorted(self.context),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def new_conversation_id() -> str:
    return f"agent_conv_{uuid.uuid4().hex[:12]}"


class ConversationStore:
    """Owns live conversations for one manager. Nothing is evicted automatically."""

    def __init__(self, clock: Callable[[], float] = time.time,
                 queue_size: int = COLLABORATION_QUEUE_SIZE):
        self._clock = clock
        self._queue_size = queue_size
        self._conversations: dict[str, Conversation] = {}

    def __contains__(self, conversation_id: str) -> bool:
        return conversation_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)

    def now(self) -> float:
        return self._clock()

    def create(self, active_agent_id: str) -> Conversation:
        now = self._clock()
        conversation = Conversation(
            id=new_conversation_id(),
            active_agent_id=active_agent_id,
            created_at=now,
            updated_at=now,
            suggestions=CollaborationQueue(self._queue_size),
        )
        self._conversations[conversation.id] = conversation
        return conversation

    def get(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def require(self, conversation_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def ids(self) -> list[str]:
        return list(self._conversations)

    def touch(self, conversation: Conversation):
        conversation.updated_at = self._clock()
