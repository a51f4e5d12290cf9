import base64
import binascii
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PLACEHOLDER_TEMPLATE = "[Attachment: {file_name}]"


class InlineData(BaseModel):
    """Binary file content carried inline in a message part.

    Attributes:
        mime_type: MIME type of the file.
        data: Base64-encoded file bytes.
        file_name: Display name, kept by the client and never sent upstream.
    """

    model_config = ConfigDict(populate_by_name=True)

    mime_type: str = Field(..., alias="mimeType", min_length=1)
    data: str
    file_name: str | None = Field(None, alias="fileName")

    @field_validator("data")
    @classmethod
    def validate_base64(cls, v: str) -> str:
        """Reject payloads that are not valid base64."""
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("inlineData.data must be base64 encoded") from e
        return v

    def decode(self) -> bytes:
        return base64.b64decode(self.data)


class Part(BaseModel):
    """Atomic content unit of a turn: either text or inline file data."""

    model_config = ConfigDict(populate_by_name=True)

    text: str | None = None
    inline_data: InlineData | None = Field(None, alias="inlineData")

    @model_validator(mode="after")
    def exactly_one_kind(self) -> "Part":
        if (self.text is None) == (self.inline_data is None):
            raise ValueError("part must contain exactly one of 'text' or 'inlineData'")
        return self

    def to_wire(self) -> dict[str, Any]:
        if self.inline_data is not None:
            return {
                "inlineData": {
                    "mimeType": self.inline_data.mime_type,
                    "data": self.inline_data.data,
                }
            }
        return {"text": self.text}

    def to_stored(self) -> dict[str, Any]:
        if self.inline_data is not None:
            file_name = self.inline_data.file_name or "file"
            return {"text": PLACEHOLDER_TEMPLATE.format(file_name=file_name)}
        return {"text": self.text}


class Turn(BaseModel):
    """One message of the conversation from the user or the model.

    The canonical turn keeps everything the client knows. Two projections
    are derived from it:

    - ``to_wire``: what the relay and the provider accept. Inline parts are
      reduced to ``mimeType`` and ``data``.
    - ``to_stored``: what is persisted locally. Inline parts become text
      placeholders so no file payload is ever written to storage.
    """

    role: Literal["user", "model"]
    parts: list[Part] = Field(..., min_length=1)

    def to_wire(self) -> dict[str, Any]:
        return {"role": self.role, "parts": [part.to_wire() for part in self.parts]}

    def to_stored(self) -> dict[str, Any]:
        return {"role": self.role, "parts": [part.to_stored() for part in self.parts]}

    @property
    def text(self) -> str:
        """Text parts joined by newlines (placeholders included)."""
        return "\n".join(part.text for part in self.parts if part.text is not None)


class ErrorResponse(BaseModel):
    """Body of every non-2xx relay response.

    Attributes:
        error: Coarse, user-facing error message.
    """

    error: str
