"""Client-side chat state: history, pending attachment and persistence.

The chat page owns one ChatSession per browser tab. It holds the canonical
conversation (attachments included, so follow-up questions keep file
context for the rest of the session) and persists only the redacted stored
projection to the browser's local storage.
"""

import base64
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from pydantic import TypeAdapter, ValidationError

from geminichat.models.schemas import InlineData, Part, Turn
from geminichat.ui.client import ChatClientError, iter_chat_response

logger = logging.getLogger(__name__)

HISTORY_STORAGE_KEY = "chatHistory"
SUPPORTED_MIME_PREFIXES = ("image/", "audio/")
SUPPORTED_MIME_TYPES = ("application/pdf",)
UNSUPPORTED_FILE_MESSAGE = "Please select a supported file type (Image, Audio, PDF)."
STORAGE_FULL_MESSAGE = "Could not save conversation history, it has grown too large."
EMPTY_REPLY_ERROR = "The AI returned an empty response. Please try rephrasing your message."

_turns_adapter = TypeAdapter(list[Turn])


class UnsupportedFileTypeError(ValueError):
    """Raised when a selected file is not an image, audio file or PDF."""


class StorageQuotaError(Exception):
    """Raised when the storage backend refuses to store the history."""


class KeyValueStorage(Protocol):
    """String storage with the semantics of ``window.localStorage``.

    ``set_item`` raises StorageQuotaError when the value is refused and
    leaves the previous value in place.
    """

    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...


def is_supported_mime_type(mime_type: str | None) -> bool:
    if not mime_type:
        return False
    return mime_type.startswith(SUPPORTED_MIME_PREFIXES) or mime_type in SUPPORTED_MIME_TYPES


@dataclass(frozen=True)
class Attachment:
    """A file selected for the next message.

    Attributes:
        file_name: Original file name, shown in previews and placeholders.
        mime_type: MIME type reported for the file.
        content: Raw file bytes, uploaded as-is.
    """

    file_name: str
    mime_type: str
    content: bytes

    @property
    def data(self) -> str:
        """Base64 payload."""
        return base64.b64encode(self.content).decode("ascii")

    @property
    def preview_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def to_part(self) -> Part:
        return Part(
            inline_data=InlineData(
                mime_type=self.mime_type,
                data=self.data,
                file_name=self.file_name,
            )
        )


class HistoryStore:
    """Persists the stored projection of the history under one key.

    Args:
        storage: Backend holding the JSON array (browser local storage in
            the app).
        key: Storage key holding the JSON array.
    """

    def __init__(self, storage: KeyValueStorage, key: str = HISTORY_STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key

    async def load(self) -> list[Turn]:
        """Load stored history; unreadable data yields an empty history."""
        try:
            raw = await self._storage.get_item(self._key)
        except TimeoutError:
            logger.warning("Stored history could not be read in time")
            return []
        if not raw:
            return []
        try:
            return _turns_adapter.validate_python(json.loads(raw))
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.warning(f"Discarding unreadable stored history: {e}")
            return []

    async def save(self, history: list[Turn]) -> None:
        """Persist the redacted projection of ``history``.

        Raises:
            StorageQuotaError: If the backend refuses the value. The
                previously stored value is left untouched.
        """
        serialized = json.dumps([turn.to_stored() for turn in history])
        await self._storage.set_item(self._key, serialized)

    async def clear(self) -> None:
        await self._storage.set_item(self._key, json.dumps([]))


class ChatSession:
    """Manages chat state for one browser tab.

    History starts empty; call ``load`` once the storage backend is
    reachable.

    Args:
        store: Persistence for the stored history projection.
        on_storage_error: Called once per session with a user-facing message
            when the history can no longer be saved.
    """

    def __init__(
        self,
        store: HistoryStore,
        on_storage_error: Callable[[str], None] | None = None,
    ) -> None:
        self._store = store
        self._on_storage_error = on_storage_error
        self._storage_error_reported = False
        self.history: list[Turn] = []
        self.attachment: Attachment | None = None
        self.is_streaming: bool = False

    async def load(self) -> list[Turn]:
        """Replace the in-memory history with the stored one."""
        self.history = await self._store.load()
        return self.history

    def attach(self, file_name: str, mime_type: str, content: bytes) -> Attachment:
        """Make a file the pending attachment, replacing any previous one.

        Raises:
            UnsupportedFileTypeError: If the type is not image, audio or PDF.
                The current attachment is left unchanged.
        """
        if not is_supported_mime_type(mime_type):
            raise UnsupportedFileTypeError(UNSUPPORTED_FILE_MESSAGE)
        self.attachment = Attachment(file_name=file_name, mime_type=mime_type, content=content)
        return self.attachment

    def remove_attachment(self) -> None:
        self.attachment = None

    def can_submit(self, message: str) -> bool:
        return bool(message.strip()) or self.attachment is not None

    def build_form(
        self, message: str, attachment: Attachment | None
    ) -> tuple[dict[str, str], dict[str, Any] | None]:
        """Form fields and file upload for the relay request."""
        data = {
            "message": message,
            "history": json.dumps([turn.to_wire() for turn in self.history]),
        }
        files = None
        if attachment is not None:
            files = {"file": (attachment.file_name, attachment.content, attachment.mime_type)}
        return data, files

    async def send(
        self,
        message: str,
        client: httpx.AsyncClient,
        on_chunk: Callable[[str], None] | None = None,
    ) -> str | None:
        """Send a message (and the pending attachment) and stream the reply.

        Returns None without any request when there is nothing to send.
        The pending attachment is consumed as soon as the request is built.

        Args:
            message: Text typed by the user.
            client: HTTP client pointed at the relay.
            on_chunk: Called with the accumulated reply after every chunk.

        Returns:
            The full reply text, or None if nothing was sent.

        Raises:
            ChatClientError: If the exchange failed or the reply was empty.
                History is unchanged.
        """
        message = message.strip()
        if not self.can_submit(message):
            return None

        attachment = self.attachment
        self.attachment = None
        data, files = self.build_form(message, attachment)

        self.is_streaming = True
        accumulated = ""
        try:
            async for chunk in iter_chat_response(client, data, files):
                accumulated += chunk
                if on_chunk is not None:
                    on_chunk(accumulated)
        finally:
            self.is_streaming = False

        # An empty model turn would be replayed upstream as an empty text part
        if not accumulated:
            logger.warning("Relay returned an empty reply; nothing committed")
            raise ChatClientError(EMPTY_REPLY_ERROR)

        await self.commit(message, attachment, accumulated)
        return accumulated

    async def commit(self, message: str, attachment: Attachment | None, reply: str) -> None:
        """Append the user and model turns of a finished exchange and persist."""
        user_parts: list[Part] = []
        if message:
            user_parts.append(Part(text=message))
        if attachment is not None:
            user_parts.append(attachment.to_part())
        self.history.append(Turn(role="user", parts=user_parts))
        self.history.append(Turn(role="model", parts=[Part(text=reply)]))
        await self.save()

    async def save(self) -> None:
        """Persist history; storage failures keep the conversation in memory."""
        try:
            await self._store.save(self.history)
        except StorageQuotaError as e:
            logger.error(f"Failed to save history, it might be too large: {e}")
            if self._on_storage_error is not None and not self._storage_error_reported:
                self._storage_error_reported = True
                self._on_storage_error(STORAGE_FULL_MESSAGE)
        except TimeoutError:
            logger.warning("Browser did not confirm the history save in time")

    async def clear(self) -> None:
        self.history = []
        await self._store.clear()
