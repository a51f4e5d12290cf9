"""FastAPI relay for the Gemini chat client.

Single-route proxy that forwards a multipart chat request to Gemini and
streams the reply back as chunked plain text.

Endpoints:
    - POST /api/chat: Relay a message and optional file, stream the reply
    - GET /health: Service health status
    - GET /favicon.ico: Empty 204
"""

from geminichat.api.app import app, create_app

__all__ = ["app", "create_app"]
