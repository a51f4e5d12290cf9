"""Provider configuration with environment variable loading.

Pydantic-based configuration for the Gemini chat service.
Reads GEMINI_API_KEY, falling back to GOOGLE_API_KEY.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()


class ProviderConfig(BaseModel):
    """Configuration for the Gemini chat service.

    Values left out are read from the environment and validated like
    explicit arguments.

    Attributes:
        api_key: API key for Gemini access.
        model_name: Model identifier to use.
        temperature: Optional sampling temperature (provider default when None).
        max_output_tokens: Optional cap on generated tokens.
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY", ""),
        validate_default=True,
        description="API key for the Gemini API",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        description="Model to use",
    )
    temperature: float | None = Field(
        default_factory=lambda: os.getenv("GEMINI_TEMPERATURE") or None,
        validate_default=True,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for response generation",
    )
    max_output_tokens: int | None = Field(
        default_factory=lambda: os.getenv("GEMINI_MAX_OUTPUT_TOKENS") or None,
        validate_default=True,
        ge=1,
        le=65536,
        description="Maximum tokens in generated response",
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError(
                "API key required. Set GEMINI_API_KEY or GOOGLE_API_KEY in .env"
            )
        return v.strip()


def get_provider_config() -> ProviderConfig:
    """Create provider configuration from environment.

    Returns:
        Configured ProviderConfig instance.

    Raises:
        ValidationError: If no API key is set or a limit is out of range.
    """
    return ProviderConfig()
