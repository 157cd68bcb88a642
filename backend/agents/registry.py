"""
AgentRegistry — lookup and heuristic routing over the persona catalog.
"""

import logging
from typing import Optional

from agents.base import AgentDefinition
from config import DEFAULT_AGENT_ID

logger = logging.getLogger(__name__)

TRIGGER_WEIGHT = 2
ROLE_WEIGHT = 1


class AgentRegistry:
    """Read-only view over the persona catalog."""

    def __init__(self, definitions: Optional[dict[str, AgentDefinition]] = None,
                 default_agent_id: str = DEFAULT_AGENT_ID):
        if definitions is None:
            from agents.definitions import AGENT_DEFINITIONS
            definitions = AGENT_DEFINITIONS
        if default_agent_id not in definitions:
            raise ValueError(f"Default agent '{default_agent_id}' is not in the catalog")
        self._agents: dict[str, AgentDefinition] = dict(definitions)
        self.default_agent_id = default_agent_id

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def get(self, agent_id: str) -> Optional[AgentDefinition]:
        """Get an agent definition by ID."""
        return self._agents.get(agent_id)

    def all(self) -> list[AgentDefinition]:
        return list(self._agents.values())

    def ids(self) -> list[str]:
        return list(self._agents.keys())

    def as_dict(self) -> dict[str, AgentDefinition]:
        return dict(self._agents)

    @property
    def default(self) -> AgentDefinition:
        return self._agents[self.default_agent_id]

    def by_capability(self, capability: str) -> list[AgentDefinition]:
        """Find agents that declare a capability with this name."""
        return [a for a in self._agents.values() if a.has_capability(capability)]

    # ── Routing ──

    @staticmethod
    def score(agent: AgentDefinition, text: str) -> int:
        """Score how well an agent fits text: 2 per trigger hit, 1 for its role.

        Triggers are matched as written against the lower-cased text, so a
        trigger containing capitals never matches.
        """
        lower = text.lower()
        score = sum(
            TRIGGER_WEIGHT
            for cap in agent.capabilities
            for trigger in cap.triggers
            if trigger in lower
        )
        if agent.role.lower() in lower:
            score += ROLE_WEIGHT
        return score

    def best_match(self, text: str) -> AgentDefinition:
        """Pick the agent with the strictly highest score.

        A tie at the top, or no agent scoring above zero, resolves to the
        default agent.
        """
        scores = {aid: self.score(agent, text) for aid, agent in self._agents.items()}
        top = max(scores.values(), default=0)
        leaders = [aid for aid, s in scores.items() if s == top]
        if top == 0 or len(leaders) > 1:
            return self.default
        return self._agents[leaders[0]]
