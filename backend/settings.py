"""
Settings — loads profile.yaml into typed configuration sections.

The profile holds every user-tunable value: completion backend, memory
retention, conversation defaults and tool gating.

Usage:
    from settings import get_profile
    profile = get_profile()
    print(profile.completion.model)
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

# ── Profile Path Resolution ──
_PROJECT_ROOT = Path(__file__).parent.parent
_DEFAULT_PROFILE_PATH = _PROJECT_ROOT / "profile.yaml"


# ── Dataclasses ──

@dataclass
class SystemConfig:
    name: str = "Ensemble"
    log_level: str = "INFO"


@dataclass
class CompletionConfig:
    backend: str = "openai"  # "openai" | "anthropic"
    endpoint: str = "http://localhost:1234"
    model: str = "local-model"
    api_key_env: str = ""
    max_tokens: int = 2048
    temperature: float = 0.7
    timeout: float = 120

    @property
    def api_key(self) -> str:
        """Resolve the API key from the configured environment variable."""
        return os.environ.get(self.api_key_env, "") if self.api_key_env else ""


@dataclass
class MemoryConfig:
    interaction_ttl_seconds: int = 7 * 24 * 3600
    sweep_interval: int = 300
    recent_interactions: int = 5


@dataclass
class ConversationsConfig:
    default_agent: str = "nexy"
    collaboration_queue_size: int = 10


@dataclass
class ToolsConfig:
    allow_code_execution: bool = False
    execution_timeout: float = 5
    workspace_root: str = "."


@dataclass
class Profile:
    system: SystemConfig = field(default_factory=SystemConfig)
    completion: CompletionConfig = field(default_factory=CompletionConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    conversations: ConversationsConfig = field(default_factory=ConversationsConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)


# ── Parsing ──

_SECTIONS = {
    "system": SystemConfig,
    "completion": CompletionConfig,
    "memory": MemoryConfig,
    "conversations": ConversationsConfig,
    "tools": ToolsConfig,
}


def _parse_dict(data: dict, cls, **overrides):
    """Create a dataclass instance from a dict, ignoring unknown keys."""
    field_names = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.items() if k in field_names}
    filtered.update(overrides)
    return cls(**filtered)


def _load_profile_from_dict(raw: dict) -> Profile:
    """Parse a raw YAML dict into a Profile dataclass."""
    profile = Profile()
    for name, cls in _SECTIONS.items():
        section = raw.get(name)
        if isinstance(section, dict):
            setattr(profile, name, _parse_dict(section, cls))
    return profile


def _resolve_profile_path() -> Path:
    env_path = os.environ.get("PROFILE_PATH")
    return Path(env_path) if env_path else _DEFAULT_PROFILE_PATH


def _load_profile() -> Profile:
    """Load profile from YAML file. Falls back to defaults if missing."""
    profile_path = _resolve_profile_path()

    if not profile_path.exists():
        logger.info("No profile found at %s, using defaults", profile_path)
        return Profile()

    try:
        raw = yaml.safe_load(profile_path.read_text()) or {}
        if not isinstance(raw, dict):
            logger.warning("%s is not a YAML mapping, using defaults", profile_path)
            return Profile()
        profile = _load_profile_from_dict(raw)
        logger.info("Profile loaded: system=%s, backend=%s, model=%s",
                    profile.system.name, profile.completion.backend,
                    profile.completion.model)
        return profile
    except (OSError, yaml.YAMLError, TypeError) as e:
        logger.error("Failed to load %s: %s, using defaults", profile_path, e)
        return Profile()


# ── Singleton ──

_profile: Optional[Profile] = None


def get_profile() -> Profile:
    """Return the profile singleton. Loads on first call."""
    global _profile
    if _profile is None:
        _profile = _load_profile()
    return _profile


def reload_profile() -> Profile:
    """Force reload of the profile from disk."""
    global _profile
    _profile = _load_profile()
    return _profile
