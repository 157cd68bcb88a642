"""
Collaboration queue — bounded FIFO of suggested persona handoffs.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Iterator

from config import COLLABORATION_QUEUE_SIZE


@dataclass(frozen=True)
class CollaborationSuggestion:
    from_agent: str
    to_agent: str
    reason: str
    context: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "from_agent": self.from_agent,
            "to_agent": self.to_agent,
            "reason": self.reason,
            "context": dict(self.context),
        }


class CollaborationQueue:
    """Keeps the newest `maxlen` suggestions; pushing past capacity drops the oldest.

    Reading never consumes entries.
    """

    def __init__(self, maxlen: int = COLLABORATION_QUEUE_SIZE):
        if maxlen < 1:
            raise ValueError("Collaboration queue size must be at least 1")
        self._items: deque[CollaborationSuggestion] = deque(maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._items.maxlen

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[CollaborationSuggestion]:
        return iter(list(self._items))

    def push(self, suggestion: CollaborationSuggestion):
        self._items.append(suggestion)

    def for_agent(self, agent_id: str) -> list[CollaborationSuggestion]:
        """Queued suggestions raised by agent_id, oldest first."""
        return [s for s in self._items if s.from_agent == agent_id]
