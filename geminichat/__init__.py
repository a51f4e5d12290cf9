"""Gemini Chat - a minimal web chat client relaying to Google Gemini.

Combines FastAPI for the streaming relay, google-genai for the model call,
NiceGUI for the chat page, and Pydantic for the conversation structure.

Components:
    - api: Relay endpoint streaming model text as chunked plain text
    - provider: Gemini chat adapter and configuration
    - ui: Chat page, client session state and message rendering
    - models: Turn and part schemas with wire/stored projections
"""

__version__ = "0.1.0"
