"""Gemini chat service with streaming support.

Thin adapter between the relay endpoint and google-genai's async chat API.
The conversation lives on the client: every request carries the full
history, which seeds a fresh chat session, and the current turn is sent as a
streaming message.
"""

import logging
from collections.abc import AsyncGenerator

from google import genai
from google.genai import types

from geminichat.models.schemas import Part, Turn
from geminichat.provider.config import ProviderConfig, get_provider_config

logger = logging.getLogger(__name__)


def to_provider_part(part: Part) -> types.Part:
    """Convert a wire part into a google-genai part."""
    if part.inline_data is not None:
        return types.Part.from_bytes(
            data=part.inline_data.decode(),
            mime_type=part.inline_data.mime_type,
        )
    return types.Part.from_text(text=part.text or "")


def to_contents(history: list[Turn]) -> list[types.Content]:
    """Convert conversation history into google-genai contents.

    Args:
        history: Prior turns in chronological order.

    Returns:
        One Content per turn, roles preserved.
    """
    return [
        types.Content(role=turn.role, parts=[to_provider_part(p) for p in turn.parts])
        for turn in history
    ]


class ChatService:
    """Service for streaming Gemini chat completions.

    Wraps google-genai's client with:
    - Lazy client creation, so a missing key fails the request, not startup
    - History conversion from wire turns
    - A clean text-only streaming interface for the relay endpoint
    """

    def __init__(self, config: ProviderConfig | None = None) -> None:
        """Initialize the chat service.

        Args:
            config: Optional provider configuration.
                    Loaded from environment on first use if not provided.
        """
        self._config = config
        self._client: genai.Client | None = None

    def _get_client(self) -> genai.Client:
        """Gemini client (lazy init)."""
        if self._client is None:
            if self._config is None:
                self._config = get_provider_config()
            self._client = genai.Client(api_key=self._config.api_key)
        return self._client

    def _generation_config(self) -> types.GenerateContentConfig | None:
        if self._config is None:
            return None
        if self._config.temperature is None and self._config.max_output_tokens is None:
            return None
        return types.GenerateContentConfig(
            temperature=self._config.temperature,
            max_output_tokens=self._config.max_output_tokens,
        )

    async def stream_reply(
        self,
        history: list[Turn],
        parts: list[Part],
    ) -> AsyncGenerator[str]:
        """Stream response text for the current turn.

        Opens a chat seeded with ``history`` and sends ``parts`` as the next
        user message. Provider errors propagate to the caller.

        Args:
            history: Prior turns in chronological order.
            parts: Parts of the current user turn.

        Yields:
            Non-empty response text chunks as they arrive.
        """
        client = self._get_client()
        chat = client.aio.chats.create(
            model=self._config.model_name,
            history=to_contents(history),
            config=self._generation_config(),
        )
        logger.debug(
            f"Sending turn with {len(parts)} part(s) after {len(history)} history turn(s)"
        )

        response_stream = await chat.send_message_stream(
            [to_provider_part(p) for p in parts]
        )
        async for chunk in response_stream:
            if chunk.text:
                yield chunk.text


# Module-level singleton instance
_chat_service: ChatService | None = None


def get_chat_service() -> ChatService:
    """Get or create the global chat service.

    Returns:
        The ChatService instance.
    """
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService()
    return _chat_service
