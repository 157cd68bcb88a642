"""
Core package — conversation state and the orchestration surface.

Structure:
    conversation.py   — Message, Conversation and ConversationStore
    collaboration.py  — bounded queue of suggested persona handoffs
    analysis.py       — rule-based mood and follow-up-agent detection
    manager.py        — ConversationManager, the public operation surface

Usage:
    from core import ConversationManager
"""

from core.analysis import analyze_response
from core.collaboration import CollaborationQueue, CollaborationSuggestion
from core.conversation import (
    Conversation,
    ConversationStore,
    Message,
    MessageMetadata,
)
from core.manager import ConversationManager

__all__ = [
    "CollaborationQueue",
    "CollaborationSuggestion",
    "Conversation",
    "ConversationManager",
    "ConversationStore",
    "Message",
    "MessageMetadata",
    "analyze_response",
]
