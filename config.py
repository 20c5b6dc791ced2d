"""
Configuration management for the claim validator.

Loads environment variables from the .env file and provides typed access to
process-level settings. Per-component settings live in infra.config.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)

logger = logging.getLogger(__name__)


class Config:
    """Configuration class for the claim validator."""

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Provider credentials (never logged)
    ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
    GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")

    # Local inference
    OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
    OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2:latest")

    # Environment
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    # LangSmith (Optional)
    LANGSMITH_API_KEY = os.getenv("LANGSMITH_API_KEY", "")
    LANGSMITH_PROJECT = os.getenv("LANGSMITH_PROJECT", "claim-validation")

    # Database
    SQLITE_DB_PATH = os.getenv("SQLITE_DB_PATH", "")

    @classmethod
    def validate(cls) -> bool:
        """
        Check that at least one cloud credential is set.

        Local Ollama needs no key, so a missing key is a warning, not an error.
        """
        configured = [
            name
            for name in ("ANTHROPIC_API_KEY", "GROQ_API_KEY", "OPENAI_API_KEY")
            if getattr(cls, name)
        ]
        if not configured:
            logger.warning(
                "No cloud provider API key set; only local Ollama inference is available. "
                "Set ANTHROPIC_API_KEY or GROQ_API_KEY in the .env file"
            )
            return False
        return True
