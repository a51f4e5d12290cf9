"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - fake_chat_service: Scriptable stand-in for the Gemini chat service
    - relay_app: Fresh FastAPI app with the fake service injected
    - async_client: HTTPX client bound to the relay app
    - memory_storage: In-memory stand-in for browser localStorage
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from geminichat.api.app import create_app
from geminichat.models.schemas import Part, Turn
from geminichat.provider.gemini_chat import get_chat_service
from geminichat.ui.session import StorageQuotaError


class FakeChatService:
    """Records calls and streams canned chunks.

    Args:
        chunks: Text chunks to yield in order.
        fail_at: Index of the chunk at which to raise instead of yielding.
            0 fails before any text is produced.
    """

    def __init__(self, chunks: list[str] | None = None, fail_at: int | None = None) -> None:
        self.chunks = chunks if chunks is not None else ["Hello", ", ", "world!"]
        self.fail_at = fail_at
        self.calls: list[tuple[list[Turn], list[Part]]] = []

    async def stream_reply(self, history: list[Turn], parts: list[Part]) -> AsyncGenerator[str]:
        self.calls.append((history, parts))
        for index, chunk in enumerate(self.chunks):
            if index == self.fail_at:
                raise RuntimeError("provider exploded: secret internal detail")
            yield chunk


class MemoryStorage(dict):
    """In-memory stand-in for browser ``localStorage``.

    Args:
        max_bytes: Refuse writes whose value is larger, like the browser's
            ``QuotaExceededError``. None means unlimited.
    """

    def __init__(self, *args: object, max_bytes: int | None = None) -> None:
        super().__init__(*args)
        self.max_bytes = max_bytes

    async def get_item(self, key: str) -> str | None:
        return self.get(key)

    async def set_item(self, key: str, value: str) -> None:
        if self.max_bytes is not None and len(value.encode("utf-8")) > self.max_bytes:
            raise StorageQuotaError(f"QuotaExceededError: {key!r} is over {self.max_bytes} bytes")
        self[key] = value


@pytest.fixture
def fake_chat_service() -> FakeChatService:
    """Fake provider streaming 'Hello, world!' in three chunks."""
    return FakeChatService()


@pytest.fixture
def relay_app(fake_chat_service: FakeChatService) -> FastAPI:
    """Relay app with the provider dependency overridden.

    Returns:
        FastAPI application using ``fake_chat_service``.
    """
    application = create_app()
    application.dependency_overrides[get_chat_service] = lambda: fake_chat_service
    return application


@pytest.fixture
async def async_client(relay_app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=relay_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()
