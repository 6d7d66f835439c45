"""AI providers: OpenAI, Gemini, Replicate."""

from relay.providers.base import (
    ChatMessage,
    ImageProvider,
    ImageResult,
    TextProvider,
    TextResult,
    VideoProvider,
    VideoResult,
)
from relay.providers.registry import ProviderRegistry, create_provider_registry

__all__ = [
    "ChatMessage",
    "ImageProvider",
    "ImageResult",
    "TextProvider",
    "TextResult",
    "VideoProvider",
    "VideoResult",
    "ProviderRegistry",
    "create_provider_registry",
]
