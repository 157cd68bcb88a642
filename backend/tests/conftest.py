"""
Test fixtures for the Ensemble test suite.
"""

import os
import sys
from pathlib import Path
from typing import Optional

import pytest

# Add backend to path
BACKEND_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BACKEND_DIR))

# Set up a minimal profile before importing anything that reads config
os.environ["PROFILE_PATH"] = str(BACKEND_DIR.parent / "profile.yaml.example")

from inference.base import CompletionBackend, CompletionResponse, ToolCall  # noqa: E402


class FakeClock:
    """Controllable epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class ScriptedBackend(CompletionBackend):
    """Completion backend that replays queued responses.

    Queued items may be strings (plain text replies), CompletionResponse
    objects, or exceptions to raise. Streams replay `chunks`; an exception
    in `chunks` is raised at that point of the stream.
    """

    def __init__(self, responses: Optional[list] = None, chunks: Optional[list] = None):
        super().__init__("scripted")
        self.responses = list(responses or [])
        self.chunks = list(chunks or [])
        self.calls: list[dict] = []
        self.stream_calls: list[dict] = []
        self.reset_calls: list[str] = []

    def queue(self, *items):
        self.responses.extend(items)

    async def send_message(self, prompt, conversation_id, tools=None, tool_results=None):
        self.calls.append({
            "prompt": prompt,
            "conversation_id": conversation_id,
            "tools": tools,
            "tool_results": tool_results,
        })
        item = self.responses.pop(0) if self.responses else "OK"
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            return CompletionResponse(content=item)
        return item

    async def send_message_stream(self, prompt, conversation_id, tools=None):
        self.stream_calls.append({"prompt": prompt, "conversation_id": conversation_id})
        for chunk in self.chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    def reset_conversation(self, conversation_id):
        self.reset_calls.append(conversation_id)
        super().reset_conversation(conversation_id)


def tool_response(*calls: tuple, content: str = "") -> CompletionResponse:
    """CompletionResponse requesting (name, input) tool calls."""
    return CompletionResponse(
        content=content,
        tool_calls=[ToolCall(id=f"call_{i}", name=name, input=args)
                    for i, (name, args) in enumerate(calls)],
        stop_reason="tool_use",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory(clock):
    from memory import MemoryStore

    return MemoryStore(clock=clock, sweep_interval=300)


@pytest.fixture
def backend():
    return ScriptedBackend()


@pytest.fixture
def registry():
    from agents.registry import AgentRegistry

    return AgentRegistry()


@pytest.fixture
def manager(backend, memory, clock):
    from core.conversation import ConversationStore
    from core.manager import ConversationManager

    return ConversationManager(backend, memory=memory, store=ConversationStore(clock=clock))


@pytest.fixture
def make_agent(backend, memory):
    """Build one persona by id, optionally bound to a user."""
    import agents  # noqa: F401
    from agents.base import BaseAgent
    from agents.definitions import AGENT_DEFINITIONS

    def _make(agent_id: str, user_id: Optional[str] = "alice"):
        agent = BaseAgent._registry[agent_id](AGENT_DEFINITIONS[agent_id], backend, memory)
        agent.set_user_id(user_id)
        return agent

    return _make
