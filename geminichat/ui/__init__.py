"""NiceGUI interface - the chat client.

Responsibilities:
    - Chat message display with streaming support
    - Single pending file attachment with preview
    - Redacted history persistence in browser-scoped storage
    - Markdown rendering with highlighted, copyable code blocks
    - Voice input where the browser supports speech recognition

Talks to the relay over HTTP only.
"""
