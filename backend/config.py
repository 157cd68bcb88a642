"""
Configuration — centralized settings for the orchestration core.
User-configurable values come from profile.yaml via get_profile().
Retention windows for tool artifacts remain as code constants.
"""

from pathlib import Path

from settings import get_profile

_profile = get_profile()

# ── Logging ──
LOG_LEVEL = _profile.system.log_level.upper()

# ── Completion Backend ──
COMPLETION_BACKEND = _profile.completion.backend
COMPLETION_ENDPOINT = _profile.completion.endpoint
COMPLETION_MODEL = _profile.completion.model
COMPLETION_MAX_TOKENS = _profile.completion.max_tokens
COMPLETION_TEMPERATURE = _profile.completion.temperature
COMPLETION_TIMEOUT = _profile.completion.timeout

# ── Conversations ──
DEFAULT_AGENT_ID = _profile.conversations.default_agent
COLLABORATION_QUEUE_SIZE = _profile.conversations.collaboration_queue_size
USER_SENTINEL = "user"
TRANSITION_MOOD = "welcoming"
COLLABORATION_REASON = "Context suggests expertise needed"

# ── Memory ──
INTERACTION_TTL = _profile.memory.interaction_ttl_seconds
MEMORY_SWEEP_INTERVAL = _profile.memory.sweep_interval
RECENT_INTERACTION_LIMIT = _profile.memory.recent_interactions
PREFERENCES_KEY = "user_preferences"
INTERACTION_PREFIX = "interaction_"

# Retention windows for artifacts produced by persona tools (seconds)
TTL_ONE_HOUR = 3600
TTL_ONE_DAY = 24 * 3600
TTL_ONE_WEEK = 7 * 24 * 3600
TTL_THIRTY_DAYS = 30 * 24 * 3600

# ── Tools ──
ALLOW_CODE_EXECUTION = _profile.tools.allow_code_execution
CODE_EXECUTION_TIMEOUT = _profile.tools.execution_timeout
WORKSPACE_ROOT = Path(_profile.tools.workspace_root).expanduser().resolve()
MAX_TOOL_OUTPUT_CHARS = 10000
