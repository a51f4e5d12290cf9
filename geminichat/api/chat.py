"""Chat relay endpoint.

Reshapes the client's multipart request into a Gemini chat call and pipes
the generated text back as a raw chunked ``text/plain`` stream.
"""

import json
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from pydantic import TypeAdapter, ValidationError
from starlette.datastructures import FormData

from geminichat.api.uploads import MAX_FIELD_SIZE, read_and_validate_size, to_inline_part
from geminichat.models.schemas import ErrorResponse, Part, Turn
from geminichat.provider.gemini_chat import ChatService, get_chat_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

GENERIC_PROVIDER_ERROR = "An unexpected error occurred while communicating with the AI."

_history_adapter = TypeAdapter(list[Turn])


def parse_history(raw: str | None) -> Any:
    """Decode the history form field.

    Malformed JSON is not fatal: it is logged and treated as empty history.

    Args:
        raw: JSON text from the ``history`` field.

    Returns:
        The decoded JSON value, or an empty list.
    """
    try:
        return json.loads(raw or "[]")
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse history JSON, using empty history: {e}")
        return []


def _validate_history(history: Any) -> list[Turn]:
    """Validate decoded history as a list of turns.

    Raises:
        HTTPException: 400 if history is not a list of valid turns.
    """
    if not isinstance(history, list):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid history format",
        )
    try:
        return _history_adapter.validate_python(history)
    except ValidationError as e:
        logger.info(f"Rejected history with invalid turns: {e.error_count()} error(s)")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid history format",
        ) from e


async def _relay(first_chunk: str, chunks: AsyncIterator[str]) -> AsyncGenerator[str]:
    """Yield provider chunks unchanged, starting with the prefetched one.

    Headers are already committed here, so a provider failure can only be
    logged and the connection aborted.
    """
    if first_chunk:
        yield first_chunk
    try:
        async for chunk in chunks:
            yield chunk
    except Exception:
        logger.exception("Provider stream failed mid-response; aborting connection")
        raise


def _text_field(form: FormData, name: str, default: str) -> str:
    """Return a text form field, rejecting file parts sent under its name."""
    value = form.get(name, default)
    if not isinstance(value, str):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Field '{name}' must be text",
        )
    return value


@router.post(
    "/chat",
    response_class=StreamingResponse,
    responses={
        200: {"content": {"text/plain": {}}, "description": "Raw model text stream"},
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    openapi_extra={
        "requestBody": {
            "content": {
                "multipart/form-data": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "message": {"type": "string", "default": ""},
                            "history": {"type": "string", "default": "[]"},
                            "file": {"type": "string", "format": "binary"},
                        },
                    }
                }
            },
        }
    },
)
async def chat(
    request: Request,
    chat_service: Annotated[ChatService, Depends(get_chat_service)],
) -> StreamingResponse:
    """Relay one user turn to Gemini and stream the reply.

    The form is parsed here rather than through ``Form()`` parameters so
    text fields may reach MAX_FIELD_SIZE: ``history`` carries every earlier
    attachment as base64.

    Form fields:
        message: The user's text (may be blank when a file is attached).
        history: JSON array of prior turns.
        file: Optional single attachment (image, audio, PDF).

    Returns:
        StreamingResponse with the concatenated model text, no framing.

    Raises:
        400: Neither message nor file, history is not a list of turns,
            a field exceeds MAX_FIELD_SIZE or more than one file is sent.
        413: File exceeds 10MB.
        500: Provider failed before streaming started.
    """
    async with request.form(max_files=1, max_part_size=MAX_FIELD_SIZE) as form:
        message = _text_field(form, "message", "")
        history = _text_field(form, "history", "[]")
        file = form.get("file")
        if isinstance(file, str):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Field 'file' must be a file upload",
            )

        decoded_history = parse_history(history)

        if not message.strip() and file is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Message or file is required",
            )

        prior_turns = _validate_history(decoded_history)

        parts: list[Part] = []
        if message.strip():
            parts.append(Part(text=message))
        if file is not None:
            content = await read_and_validate_size(file)
            parts.append(to_inline_part(content, file.content_type))

    chunks = chat_service.stream_reply(prior_turns, parts)

    # Wait for the first chunk so provider failures can still become a 500
    try:
        first_chunk = await anext(chunks, "")
    except Exception as e:
        logger.exception("Provider request failed before streaming started")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=GENERIC_PROVIDER_ERROR,
        ) from e

    return StreamingResponse(_relay(first_chunk, chunks), media_type="text/plain")
