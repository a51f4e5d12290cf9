"""Test package for Gemini Chat.

Structure:
    - unit/: Individual function and class tests
    - integration/: Relay endpoint and client/relay round trips

The Gemini provider is always replaced: either by a fake service injected
through FastAPI dependency overrides or by a mocked google-genai client.
Leverages pytest with pytest-check for soft assertions.
"""
