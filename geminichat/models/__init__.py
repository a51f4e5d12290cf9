"""Pydantic models shared by the relay and the chat client.

Provides type safety and validation for the conversation structure.

Models:
    - Turn: One message from the user or the model
    - Part: Text or inline file data inside a turn
    - InlineData: Base64 file payload with MIME type
    - ErrorResponse: JSON body of relay errors
"""

from geminichat.models.schemas import ErrorResponse, InlineData, Part, Turn

__all__ = ["ErrorResponse", "InlineData", "Part", "Turn"]
