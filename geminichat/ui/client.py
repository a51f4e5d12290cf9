"""HTTP client for the chat relay.

Posts the multipart chat form and exposes the raw text body as an async
iterator of decoded chunks.
"""

import logging
import os
from collections.abc import AsyncGenerator
from typing import Any

import httpx

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("API_BASE_URL", f"http://localhost:{os.getenv('PORT', '8000')}")
CHAT_PATH = "/api/chat"
REQUEST_TIMEOUT = 120.0
FALLBACK_ERROR = "Something went wrong."
INTERRUPTED_ERROR = "The response was interrupted before it finished."
TIMEOUT_ERROR = "The request timed out. Please try again."


class ChatClientError(Exception):
    """Raised when an exchange with the relay fails.

    The message is safe to show to the user.
    """


def create_http_client() -> httpx.AsyncClient:
    """AsyncClient pointed at the relay with the chat timeout applied."""
    return httpx.AsyncClient(base_url=API_BASE_URL, timeout=REQUEST_TIMEOUT)


async def _error_message(response: httpx.Response) -> str:
    """Extract the relay's ``error`` field from a failed response."""
    await response.aread()
    try:
        data = response.json()
    except ValueError:
        return FALLBACK_ERROR
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return FALLBACK_ERROR


async def iter_chat_response(
    client: httpx.AsyncClient,
    data: dict[str, str],
    files: dict[str, Any] | None = None,
) -> AsyncGenerator[str]:
    """Stream the relay's reply as decoded text chunks.

    Args:
        client: HTTP client (its base URL must point at the relay).
        data: Form fields (``message`` and ``history``).
        files: Optional ``{"file": (name, content, mime_type)}`` upload.

    Yields:
        Text chunks in arrival order; their concatenation is the reply.

    Raises:
        ChatClientError: On non-2xx status, connection failure or a body
            that ends before the server finished it.
    """
    received = False
    try:
        async with client.stream("POST", CHAT_PATH, data=data, files=files) as response:
            if response.is_error:
                message = await _error_message(response)
                logger.warning(f"Relay returned HTTP {response.status_code}: {message}")
                raise ChatClientError(message)
            async for chunk in response.aiter_text():
                if chunk:
                    received = True
                    yield chunk
    except httpx.TimeoutException as e:
        logger.warning(f"Relay request timed out: {e!r}")
        raise ChatClientError(TIMEOUT_ERROR) from e
    except httpx.RequestError as e:
        logger.warning(f"Relay request failed: {e!r}")
        if received:
            raise ChatClientError(INTERRUPTED_ERROR) from e
        raise ChatClientError(f"Connection failed: {e}") from e
