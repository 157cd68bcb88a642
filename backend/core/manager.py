"""
ConversationManager — the operation surface of the orchestration core.

Owns conversation lifecycle, the active-agent pointer and per-conversation
collaboration suggestions, and delegates each turn to the active persona.

The manager never switches agents on its own: the registry's best match is
computed on every send but only logged, and reply analysis only queues
suggestions. Callers must not run two turns on the same conversation at
once; there is no per-conversation lock.
"""

import inspect
import logging
from contextlib import aclosing
from dataclasses import replace
from typing import Any, AsyncIterator, Optional

import agents  # noqa: F401  registers the persona classes
from agents.base import AgentDefinition, BaseAgent, ChunkCallback
from agents.registry import AgentRegistry
from config import (
    COLLABORATION_QUEUE_SIZE,
    COLLABORATION_REASON,
    TRANSITION_MOOD,
    USER_SENTINEL,
)
from core.analysis import analyze_response
from core.collaboration import CollaborationSuggestion
from core.conversation import Conversation, ConversationStore, Message, MessageMetadata
from errors import AgentNotFoundError
from inference.base import CompletionBackend
from memory import MemoryStore

logger = logging.getLogger(__name__)


class ConversationManager:
    """Routes turns between personas and keeps conversation state.

    Args:
        backend: Completion backend shared by every persona.
        registry: Persona catalog; defaults to the built-in five.
        memory: Memory store shared by every persona.
        store: Conversation store; one is created when omitted.
        user_id: User bound to every persona for memory bookkeeping.
    """

    def __init__(self, backend: CompletionBackend,
                 registry: Optional[AgentRegistry] = None,
                 memory: Optional[MemoryStore] = None,
                 store: Optional[ConversationStore] = None,
                 user_id: Optional[str] = None):
        self.backend = backend
        self.registry = registry if registry is not None else AgentRegistry()
        self.memory = memory if memory is not None else MemoryStore()
        self.store = (store if store is not None
                      else ConversationStore(queue_size=COLLABORATION_QUEUE_SIZE))
        self.agents: dict[str, BaseAgent] = BaseAgent.create_all(
            self.registry.as_dict(), backend, self.memory
        )
        self.user_id: Optional[str] = None
        if user_id:
            self.set_user_id(user_id)

    def set_user_id(self, user_id: Optional[str]):
        """Bind a user to every persona. None unbinds."""
        self.user_id = user_id
        for agent in self.agents.values():
            agent.set_user_id(user_id)

    # ── Lifecycle ──

    def create_conversation(self, initial_agent_id: Optional[str] = None) -> str:
        agent_id = initial_agent_id or self.registry.default_agent_id
        if agent_id not in self.registry:
            raise AgentNotFoundError(agent_id)
        conversation = self.store.create(agent_id)
        logger.info("Conversation %s created with %s", conversation.id, agent_id)
        return conversation.id

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return self.store.get(conversation_id)

    def list_conversations(self) -> list[dict]:
        return [self.store.get(cid).to_dict() for cid in self.store.ids()]

    def switch_agent(self, conversation_id: str, agent_id: str) -> bool:
        """Hand the conversation to another persona.

        Returns False, leaving state untouched, when the conversation or
        the target agent is unknown.
        """
        conversation = self.store.get(conversation_id)
        target = self.registry.get(agent_id)
        if conversation is None or target is None:
            return False

        previous = self.registry.get(conversation.active_agent_id)
        previous_name = previous.name if previous else conversation.active_agent_id
        conversation.append(Message(
            role="assistant",
            content=f"{previous_name} has handed over to {target.name}. {target.greeting}",
            agent_id=target.id,
            timestamp=self.store.now(),
            metadata=MessageMetadata(mood=TRANSITION_MOOD),
        ))
        conversation.active_agent_id = target.id
        self.store.touch(conversation)
        logger.info("Conversation %s switched %s -> %s",
                    conversation_id, previous_name, target.name)
        return True

    def clear_conversation(self, conversation_id: str) -> bool:
        conversation = self.store.get(conversation_id)
        if conversation is None:
            return False
        conversation.clear()
        self.store.touch(conversation)
        self.backend.reset_conversation(conversation_id)
        return True

    # ── Turns ──

    async def send_message(self, conversation_id: str, text: str,
                           agent_id: Optional[str] = None) -> Message:
        """Run one turn and return the appended assistant message.

        Upstream failures propagate after the user message was recorded.
        """
        conversation, agent = self._begin_turn(conversation_id, text, agent_id)
        reply = await agent.send_message(text, conversation_id)
        return self._finish_turn(
            conversation, agent.agent_id, text, reply.content,
            reply.tools_used, reply.memory_accessed,
        )

    async def stream_message(self, conversation_id: str, text: str,
                             agent_id: Optional[str] = None) -> AsyncIterator[str]:
        """Yield reply deltas in arrival order.

        The assembled message is appended once the stream ends, including
        when the consumer stops early. Nothing is appended on failure.
        """
        async with aclosing(self._stream_turn(conversation_id, text, agent_id, [])) as stream:
            async for delta in stream:
                yield delta

    async def send_message_stream(self, conversation_id: str, text: str,
                                  agent_id: Optional[str] = None,
                                  on_chunk: Optional[ChunkCallback] = None) -> Message:
        """Stream a turn through on_chunk and return the appended message."""
        appended: list[Message] = []
        async with aclosing(
            self._stream_turn(conversation_id, text, agent_id, appended)
        ) as stream:
            async for delta in stream:
                if on_chunk is not None:
                    result = on_chunk(delta)
                    if inspect.isawaitable(result):
                        await result
        return appended[0]

    async def _stream_turn(self, conversation_id: str, text: str,
                           agent_id: Optional[str],
                           appended: list[Message]) -> AsyncIterator[str]:
        conversation, agent = self._begin_turn(conversation_id, text, agent_id)
        memory_accessed = agent.uses_memory
        parts: list[str] = []
        failed = False
        try:
            async with aclosing(agent.stream_reply(text, conversation_id)) as stream:
                async for delta in stream:
                    parts.append(delta)
                    yield delta
        except Exception:
            failed = True
            raise
        finally:
            if not failed:
                appended.append(self._finish_turn(
                    conversation, agent.agent_id, text, "".join(parts), [], memory_accessed,
                ))

    def _begin_turn(self, conversation_id: str, text: str,
                    agent_id: Optional[str]) -> tuple[Conversation, BaseAgent]:
        conversation = self.store.require(conversation_id)
        if agent_id is None:
            agent_id = conversation.active_agent_id
            suggested = self.registry.best_match(text)
            if suggested.id != agent_id:
                logger.info("Suggested agent switch from %s to %s", agent_id, suggested.id)

        agent = self.agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)

        conversation.append(Message(
            role="user", content=text, agent_id=USER_SENTINEL, timestamp=self.store.now(),
        ))
        return conversation, agent

    def _finish_turn(self, conversation: Conversation, agent_id: str, text: str,
                     content: str, tools_used: list[str],
                     memory_accessed: bool) -> Message:
        metadata = replace(
            analyze_response(content, agent_id),
            tools_used=tuple(tools_used),
            memory_accessed=memory_accessed,
        )
        message = Message(
            role="assistant",
            content=content,
            agent_id=agent_id,
            timestamp=self.store.now(),
            metadata=metadata,
        )
        conversation.append(message)
        self.store.touch(conversation)

        if metadata.suggested_next_agent and metadata.suggested_next_agent != agent_id:
            conversation.suggestions.push(CollaborationSuggestion(
                from_agent=agent_id,
                to_agent=metadata.suggested_next_agent,
                reason=COLLABORATION_REASON,
                context={"last_message": text},
            ))
            logger.debug("Queued collaboration %s -> %s on %s",
                         agent_id, metadata.suggested_next_agent, conversation.id)
        return message

    # ── Queries ──

    def get_conversation_history(self, conversation_id: str) -> list[Message]:
        return self.store.require(conversation_id).history()

    def get_collaboration_suggestions(self, conversation_id: str) -> list[CollaborationSuggestion]:
        """Queued suggestions raised by the conversation's current active agent."""
        conversation = self.store.require(conversation_id)
        return conversation.suggestions.for_agent(conversation.active_agent_id)

    def get_active_agent(self, conversation_id: str) -> Optional[AgentDefinition]:
        conversation = self.store.get(conversation_id)
        if conversation is None:
            return None
        return self.registry.get(conversation.active_agent_id)

    # ── Context Bag ──

    def set_context(self, conversation_id: str, key: str, value: Any):
        conversation = self.store.require(conversation_id)
        conversation.context[key] = value
        self.store.touch(conversation)

    def get_context(self, conversation_id: str, key: str) -> Any:
        conversation = self.store.get(conversation_id)
        if conversation is None:
            return None
        return conversation.context.get(key)
