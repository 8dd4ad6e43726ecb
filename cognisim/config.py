"""
Cognisim Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Config:
    """Application configuration loaded from environment variables."""

    # Oracle (generative-text service) configuration
    # Any mirascope provider name works; "ollama" routes to the local transport.
    ORACLE_PROVIDER: str = os.getenv("ORACLE_PROVIDER", "openai")
    ORACLE_MODEL: str = os.getenv("ORACLE_MODEL", "gpt-4o-mini")

    # API Keys
    ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")

    # Local Ollama server
    OLLAMA_BASE_URL: str = os.getenv("OLLAMA_BASE_URL", "http://127.0.0.1:11434")

    # Per-call deadline. A timeout counts as an ordinary oracle failure.
    ORACLE_TIMEOUT_SECONDS: float = float(os.getenv("ORACLE_TIMEOUT_SECONDS", "120"))
    # 1 means a single attempt (no retry)
    ORACLE_MAX_ATTEMPTS: int = int(os.getenv("ORACLE_MAX_ATTEMPTS", "1"))

    # Cognition
    RECENT_EXPERIENCE_LIMIT: int = int(os.getenv("RECENT_EXPERIENCE_LIMIT", "20"))

    # Audit trail of prompts/responses (JSON lines). Unset = console only.
    AUDIT_LOG_PATH: str | None = os.getenv("AUDIT_LOG_PATH")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if required values are missing."""
        provider = cls.ORACLE_PROVIDER.lower()

        if provider == "ollama" and not cls.OLLAMA_BASE_URL:
            raise ValueError(
                "OLLAMA_BASE_URL is required when using the 'ollama' provider "
                "(e.g., http://localhost:11434)"
            )

        if provider == "anthropic" and not cls.ANTHROPIC_API_KEY:
            raise ValueError(
                "ANTHROPIC_API_KEY is required when using the 'anthropic' provider"
            )

        if provider == "openai" and not cls.OPENAI_API_KEY:
            raise ValueError(
                "OPENAI_API_KEY is required when using the 'openai' provider. "
                "For local models, set ORACLE_PROVIDER=ollama instead."
            )

        if cls.ORACLE_MAX_ATTEMPTS < 1:
            raise ValueError("ORACLE_MAX_ATTEMPTS must be at least 1")

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Cognisim Configuration:",
            f"  Oracle Provider: {cls.ORACLE_PROVIDER}",
            f"  Oracle Model: {cls.ORACLE_MODEL}",
            f"  Timeout: {cls.ORACLE_TIMEOUT_SECONDS}s",
            f"  Max Attempts: {cls.ORACLE_MAX_ATTEMPTS}",
            f"  Recent Experiences: {cls.RECENT_EXPERIENCE_LIMIT}",
            f"  Audit Log: {cls.AUDIT_LOG_PATH or '(console)'}",
        ]
        return "\n".join(lines)
