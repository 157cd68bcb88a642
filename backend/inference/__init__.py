"""
Inference package — completion backend abstraction.

Provides adapters for the supported model providers and a factory that
builds the configured one from the profile.

Quick start:
    from inference import create_backend
    backend = create_backend()
    response = await backend.send_message("Hello", "conv-1")
"""

from typing import Optional

from inference.base import (
    CompletionBackend,
    CompletionResponse,
    ToolCall,
    ToolResult,
    ToolSpec,
)
from inference.openai_compat import OpenAICompatBackend
from inference.anthropic_backend import AnthropicBackend
from settings import CompletionConfig, get_profile


def _build_openai(cfg: CompletionConfig) -> CompletionBackend:
    return OpenAICompatBackend(
        base_url=cfg.endpoint, model=cfg.model, api_key=cfg.api_key,
        max_tokens=cfg.max_tokens, temperature=cfg.temperature,
        timeout=cfg.timeout,
    )


def _build_anthropic(cfg: CompletionConfig) -> CompletionBackend:
    return AnthropicBackend(
        model=cfg.model, api_key=cfg.api_key,
        base_url=cfg.endpoint if cfg.endpoint.startswith("https://") else "",
        max_tokens=cfg.max_tokens, temperature=cfg.temperature,
        timeout=cfg.timeout,
    )


_BACKEND_BUILDERS = {
    "openai": _build_openai,
    "anthropic": _build_anthropic,
}


def create_backend(cfg: Optional[CompletionConfig] = None) -> CompletionBackend:
    """Build the completion backend named by the profile's completion section."""
    cfg = cfg or get_profile().completion
    builder = _BACKEND_BUILDERS.get(cfg.backend)
    if builder is None:
        raise ValueError(
            f"Unknown completion backend '{cfg.backend}'. "
            f"Choose one of: {', '.join(sorted(_BACKEND_BUILDERS))}"
        )
    return builder(cfg)


__all__ = [
    "AnthropicBackend",
    "CompletionBackend",
    "CompletionResponse",
    "OpenAICompatBackend",
    "ToolCall",
    "ToolResult",
    "ToolSpec",
    "create_backend",
]
