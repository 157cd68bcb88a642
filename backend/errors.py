"""
Error types raised by the orchestration core.
"""


class EnsembleError(Exception):
    """Base class for all orchestration errors."""


class ConversationNotFoundError(EnsembleError, LookupError):
    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class AgentNotFoundError(EnsembleError, LookupError):
    def __init__(self, agent_id: str):
        super().__init__(f"Agent not found: {agent_id}")
        self.agent_id = agent_id


class CompletionError(EnsembleError):
    """The completion backend failed to produce a response or stream."""
