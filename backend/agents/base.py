"""
Base agent abstraction for the persona architecture.

Provides the immutable persona descriptors (PersonalityDescriptor,
CapabilityDescriptor, AgentDefinition) and BaseAgent, the behavior every
persona inherits: prompt construction, plain and streaming turns, tool
dispatch, and per-user memory bookkeeping.
"""

import inspect
import json
import logging
import time
import uuid
from abc import ABC, abstractmethod
from contextlib import aclosing
from dataclasses import asdict, dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Union

from agents.tool_loop import run_tool_loop
from config import (
    INTERACTION_PREFIX,
    INTERACTION_TTL,
    PREFERENCES_KEY,
    RECENT_INTERACTION_LIMIT,
)
from errors import CompletionError
from inference.base import CompletionBackend, ToolSpec
from memory import MemoryRecord, MemoryStore

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class PersonalityDescriptor:
    traits: tuple[str, ...]
    speaking_style: str
    emotional_range: tuple[str, ...]
    primary_goal: str


@dataclass(frozen=True)
class CapabilityDescriptor:
    name: str
    description: str
    triggers: tuple[str, ...]


@dataclass(frozen=True)
class AgentDefinition:
    id: str
    name: str
    role: str
    personality: PersonalityDescriptor
    capabilities: tuple[CapabilityDescriptor, ...]
    system_prompt: str
    greeting: str
    tools: tuple[ToolSpec, ...] = ()

    def has_capability(self, name: str) -> bool:
        return any(c.name == name for c in self.capabilities)

    def tool_names(self) -> list[str]:
        return [t.name for t in self.tools]


@dataclass
class AgentReply:
    """Final text of one persona turn plus what the turn touched."""
    content: str
    tools_used: list[str] = field(default_factory=list)
    memory_accessed: bool = False


class BaseAgent(ABC):
    """Base class for all personas.

    ## Persona Protocol

    Every persona subclass must:
    1. Define an AGENT_ID class attribute matching its catalog entry.
    2. Implement tool_handlers() returning {tool name: callable}. Handlers
       receive the tool input as keyword arguments and may be coroutines.
    3. Decorate the class with @register_agent_class to enable auto-registration.
    """

    AGENT_ID: str = ""

    # Class-level registry: agent_id -> persona class
    _registry: dict[str, type] = {}

    @classmethod
    def create_all(cls, definitions: dict[str, AgentDefinition],
                   backend: CompletionBackend,
                   memory: MemoryStore) -> dict[str, "BaseAgent"]:
        """Instantiate every registered persona that has a catalog definition."""
        agents = {}
        for aid, acls in cls._registry.items():
            definition = definitions.get(aid)
            if definition is None:
                logger.warning("No definition for registered persona %s", aid)
                continue
            agents[aid] = acls(definition, backend, memory)
        return agents

    def __init__(self, definition: AgentDefinition, backend: CompletionBackend,
                 memory: MemoryStore):
        self.definition = definition
        self.agent_id = definition.id
        self.backend = backend
        self.memory = memory
        self.user_id: Optional[str] = None
        self._handlers = self.tool_handlers()

    def set_user_id(self, user_id: Optional[str]):
        self.user_id = user_id

    @property
    def uses_memory(self) -> bool:
        """Whether prompts for this agent consult the bound user's memory."""
        return bool(self.user_id)

    @property
    def tools(self) -> list[ToolSpec]:
        return list(self.definition.tools)

    # ── Prompt Construction ──

    def persona_context(self) -> str:
        """Persona-specific text placed between the system prompt and the message."""
        p = self.definition.personality
        return (
            f"\n\nPersonality: {', '.join(p.traits)}. "
            f"Speaking style: {p.speaking_style}. "
            f"Primary goal: {p.primary_goal}."
        )

    async def build_prompt(self, message: str,
                           exclude_key: Optional[str] = None) -> tuple[str, bool]:
        """Return (enhanced prompt, whether memory was consulted).

        exclude_key drops the interaction just recorded for this message so
        it does not appear twice.
        """
        context = self.persona_context()
        memory_accessed = self.uses_memory
        if memory_accessed:
            prefs = await self.get_user_preferences()
            recent = [
                r for r in await self.get_recent_interactions(RECENT_INTERACTION_LIMIT + 1)
                if r.key != exclude_key
            ][:RECENT_INTERACTION_LIMIT]
            context += self._format_memory_context(prefs, recent)
        return f"{self.definition.system_prompt}{context}\n\nUser: {message}", memory_accessed

    @staticmethod
    def _format_memory_context(prefs: dict, recent: list[MemoryRecord]) -> str:
        if not prefs and not recent:
            return ""
        lines = ["", "", "[Previous context and preferences]"]
        if prefs:
            lines.append(f"Preferences: {json.dumps(prefs, default=str)}")
        for record in reversed(recent):
            value = record.value if isinstance(record.value, dict) else {}
            lines.append(f"{value.get('role', '?')}: {str(value.get('content', ''))[:200]}")
        return "\n".join(lines)

    # ── Messaging ──

    async def send_message(self, text: str, conversation_id: str) -> AgentReply:
        """Run one turn: record, prompt, complete, and resolve tool calls."""
        user_key = await self._store_interaction("user", text, conversation_id)
        prompt, memory_accessed = await self.build_prompt(text, exclude_key=user_key)
        response = await self.backend.send_message(
            prompt, conversation_id, tools=self.tools or None
        )

        if response.wants_tools:
            outcome = await run_tool_loop(self, response, conversation_id)
            await self._store_interaction("assistant", outcome.content, conversation_id)
            return AgentReply(outcome.content, outcome.tools_used, memory_accessed)

        await self._store_interaction("assistant", response.content, conversation_id)
        return AgentReply(response.content, [], memory_accessed)

    async def stream_reply(self, text: str, conversation_id: str) -> AsyncIterator[str]:
        """Yield the reply as text deltas in arrival order.

        The accumulated text is recorded once the stream ends, including when
        the consumer stops early. Upstream failures are not recorded.
        """
        user_key = await self._store_interaction("user", text, conversation_id)
        prompt, _ = await self.build_prompt(text, exclude_key=user_key)

        parts: list[str] = []
        failed = False
        try:
            async with aclosing(
                self.backend.send_message_stream(prompt, conversation_id)
            ) as stream:
                async for delta in stream:
                    parts.append(delta)
                    yield delta
        except CompletionError:
            failed = True
            raise
        finally:
            if not failed:
                await self._store_interaction("assistant", "".join(parts), conversation_id)

    async def send_message_stream(self, text: str, conversation_id: str,
                                  on_chunk: Optional[ChunkCallback] = None) -> str:
        """Stream a turn, calling on_chunk per delta. Returns the full text."""
        parts: list[str] = []
        async with aclosing(self.stream_reply(text, conversation_id)) as stream:
            async for delta in stream:
                parts.append(delta)
                if on_chunk is not None:
                    result = on_chunk(delta)
                    if inspect.isawaitable(result):
                        await result
        return "".join(parts)

    # ── Tools ──

    @abstractmethod
    def tool_handlers(self) -> dict[str, Callable[..., Any]]:
        """Map each tool name in this persona's manifest to its handler."""
        ...

    async def execute_tool(self, name: str, tool_input: Optional[dict] = None) -> Any:
        """Run one tool. Unknown names yield an error result instead of raising."""
        handler = self._handlers.get(name)
        if handler is None:
            return {"error": f"Unknown tool: {name}"}
        result = handler(**(tool_input or {}))
        if inspect.isawaitable(result):
            result = await result
        return result

    # ── Memory Bookkeeping ──

    async def remember(self, key: str, value: Any, ttl_seconds: Optional[float] = None,
                       metadata: Optional[dict] = None) -> Optional[MemoryRecord]:
        """Store a record for the bound user. Failures are logged, never raised."""
        if not self.user_id:
            return None
        try:
            return await self.memory.store(
                self.user_id, self.agent_id, key, value,
                ttl_seconds=ttl_seconds, metadata=metadata,
            )
        except Exception as e:
            logger.warning("Memory write %s for %s failed: %s", key, self.agent_id, e)
            return None

    async def recall(self, key: str) -> Optional[MemoryRecord]:
        if not self.user_id:
            return None
        try:
            return await self.memory.retrieve(self.user_id, self.agent_id, key)
        except Exception as e:
            logger.warning("Memory read %s for %s failed: %s", key, self.agent_id, e)
            return None

    async def recall_prefix(self, prefix: str,
                            agent_id: Optional[str] = None) -> list[MemoryRecord]:
        if not self.user_id:
            return []
        try:
            return await self.memory.search_by_prefix(
                self.user_id, agent_id or self.agent_id, prefix
            )
        except Exception as e:
            logger.warning("Memory search %s for %s failed: %s", prefix, self.agent_id, e)
            return []

    @staticmethod
    def artifact_key(prefix: str) -> str:
        """Unique, time-ordered memory key with the given prefix."""
        return f"{prefix}{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"

    async def get_user_preferences(self) -> dict:
        record = await self.recall(PREFERENCES_KEY)
        if record is None or not isinstance(record.value, dict):
            return {}
        return dict(record.value)

    async def set_user_preference(self, key: str, value: Any) -> dict:
        """Set one preference in the durable (non-expiring) preference bag."""
        prefs = await self.get_user_preferences()
        prefs[key] = value
        await self.remember(PREFERENCES_KEY, prefs, ttl_seconds=None,
                            metadata={"updated_key": key})
        return prefs

    async def get_recent_interactions(self, limit: int = 10) -> list[MemoryRecord]:
        """Most recent stored interactions first."""
        return (await self.recall_prefix(INTERACTION_PREFIX))[:limit]

    async def _store_interaction(self, role: str, content: str,
                                 conversation_id: str) -> Optional[str]:
        if not self.user_id:
            return None
        key = self.artifact_key(INTERACTION_PREFIX)
        record = await self.remember(
            key,
            {"role": role, "content": content, "conversation_id": conversation_id},
            ttl_seconds=INTERACTION_TTL,
            metadata={
                "agent_personality": asdict(self.definition.personality),
                "capabilities": [c.name for c in self.definition.capabilities],
            },
        )
        return key if record is not None else None


def register_agent_class(cls):
    """Decorator: register a persona class in BaseAgent._registry by its AGENT_ID.

    Usage:
        @register_agent_class
        class MyAgent(BaseAgent):
            AGENT_ID = "my_agent"
            ...
    """
    agent_id = getattr(cls, "AGENT_ID", None)
    if not agent_id:
        raise ValueError(f"{cls.__name__} must define AGENT_ID class attribute")
    BaseAgent._registry[agent_id] = cls
    return cls
