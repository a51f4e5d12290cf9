"""Unit tests for individual components in isolation.

Coverage:
    - models/: Turn and part validation and projections
    - provider/: Configuration and google-genai conversion
    - ui/: Session state, history persistence and markdown rendering

Uses mocks for external services when needed.
"""
