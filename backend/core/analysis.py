"""
Response analysis — rule-based mood and follow-up-agent detection.

No model call is involved; the same text and agent always yield the same
metadata.
"""

from typing import Optional

from core.conversation import MessageMetadata

DEFAULT_MOOD = "neutral"
DEFAULT_CONFIDENCE = 0.8

# Checked in order against the lower-cased text; first match wins.
HANDOFF_KEYWORDS = [
    ("dev", ("code", "programming")),
    ("designer", ("design", "ui")),
    ("debugger", ("error", "bug")),
]


def detect_mood(text: str) -> str:
    if "!" in text or "great" in text or "excellent" in text:
        return "excited"
    if "?" in text and "help" in text:
        return "helpful"
    if "sorry" in text or "apologize" in text:
        return "apologetic"
    return DEFAULT_MOOD


def suggest_next_agent(text: str, agent_id: str) -> Optional[str]:
    """Agent whose domain the reply touches, excluding the agent that wrote it."""
    lower = text.lower()
    for target, keywords in HANDOFF_KEYWORDS:
        if target != agent_id and any(k in lower for k in keywords):
            return target
    return None


def analyze_response(text: str, agent_id: str) -> MessageMetadata:
    return MessageMetadata(
        mood=detect_mood(text),
        confidence=DEFAULT_CONFIDENCE,
        suggested_next_agent=suggest_next_agent(text, agent_id),
    )
