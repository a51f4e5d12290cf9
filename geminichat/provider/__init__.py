"""Gemini provider adapter.

Responsibilities:
    - Provider configuration from environment
    - Conversion of wire turns into google-genai contents
    - Streaming text generation for the relay endpoint

Keeps google-genai details out of the HTTP layer.
"""

from geminichat.provider.config import ProviderConfig, get_provider_config
from geminichat.provider.gemini_chat import ChatService, get_chat_service

__all__ = ["ChatService", "ProviderConfig", "get_chat_service", "get_provider_config"]
