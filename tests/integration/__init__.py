"""Integration tests for components working together as a system.

Coverage:
    - Relay endpoint over real HTTP requests against the ASGI app
    - Chat client session talking to the relay end to end

The provider is faked so no API key or network access is required.
"""
