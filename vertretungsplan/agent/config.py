"""Interpreter model settings.

Only loaded when ``EXTRACTION_STRATEGY=interpreter``. The interpreter runs
inside a refresh cycle, so every call is bounded by ``request_timeout`` and
``max_retries``.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

# A plan day of a few hundred entries fits comfortably
DEFAULT_MAX_TOKENS = 4096


def _api_key_from_env() -> str:
    return os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY", "")


class AgentConfig(BaseModel):
    """Settings for the model behind the interpreter extraction strategy.

    Works with OpenAI or any OpenAI-compatible endpoint set in LLM_BASE_URL.

    Attributes:
        api_key: Key for the model provider.
        base_url: Endpoint of an OpenAI-compatible provider, None for OpenAI.
        model_name: Model identifier.
        temperature: Sampling temperature; 0.0 keeps extraction repeatable.
        max_tokens: Upper bound on the length of one answer.
        request_timeout: Seconds one interpreter call may take.
        max_retries: Retries the client makes before the call fails.
    """

    api_key: str = Field(
        default_factory=_api_key_from_env,
        validate_default=True,
        description="LLM_API_KEY, falling back to OPENAI_API_KEY",
    )
    base_url: str | None = Field(
        default_factory=lambda: os.getenv("LLM_BASE_URL") or None,
        validate_default=True,
        description="OpenAI-compatible endpoint",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o-mini"),
        validate_default=True,
        min_length=1,
        description="Interpreter model",
    )
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1, le=128000)
    request_timeout: float = Field(
        default_factory=lambda: float(os.getenv("LLM_TIMEOUT", "60")),
        validate_default=True,
        gt=0.0,
        description="Per-call timeout in seconds",
    )
    max_retries: int = Field(
        default_factory=lambda: int(os.getenv("LLM_MAX_RETRIES", "2")),
        validate_default=True,
        ge=0,
        le=10,
        description="Client retries per call",
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Reject a missing or blank key."""
        if not v or not v.strip():
            raise ValueError("API key required. Set LLM_API_KEY or OPENAI_API_KEY in .env")
        return v.strip()

    @field_validator("base_url")
    @classmethod
    def normalize_base_url(cls, v: str | None) -> str | None:
        """Drop a trailing slash so the client does not request ``//chat``."""
        if v is None or not v.strip():
            return None
        return v.strip().rstrip("/")


def get_agent_config() -> AgentConfig:
    """Create interpreter settings from environment.

    Raises:
        ValueError: If no API key is set or a value is out of range.
    """
    return AgentConfig()
