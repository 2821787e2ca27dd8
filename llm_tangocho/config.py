from dataclasses import dataclass
import os
from typing import Optional

DEBUG_MODE = os.getenv("DEBUG", "0") == "1"

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_EXAMPLE_MODEL = "llama3-8b-8192"
DEFAULT_TRANSLATION_MODEL = "gpt-5-mini"


class ConfigurationError(RuntimeError):
    """A required credential or setting is missing."""


@dataclass
class ServiceConfig:
    """
    Settings for one OpenAI-compatible chat service.

    Built once and handed to the service client at construction time;
    nothing reads credentials from ambient state after that.
    """

    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: str = DEFAULT_TRANSLATION_MODEL
    temperature: float = 1.0
    max_tokens: Optional[int] = None
    key_name: str = "OPENAI_API_KEY"

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                f"{self.key_name} is not set. Pass --api-key or export {self.key_name}."
            )
        return self.api_key

    @classmethod
    def for_examples(cls, api_key: Optional[str] = None) -> "ServiceConfig":
        """Example-sentence generation through Groq's OpenAI-compatible API."""
        return cls(
            api_key=api_key or os.environ.get("GROQ_API_KEY"),
            base_url=os.environ.get("GROQ_BASE_URL", GROQ_BASE_URL),
            model=os.environ.get("TANGOCHO_EXAMPLE_MODEL", DEFAULT_EXAMPLE_MODEL),
            temperature=0.7,
            max_tokens=100,
            key_name="GROQ_API_KEY",
        )

    @classmethod
    def for_translation(cls, api_key: Optional[str] = None) -> "ServiceConfig":
        return cls(
            api_key=api_key or os.environ.get("OPENAI_API_KEY"),
            base_url=os.environ.get("OPENAI_BASE_URL"),
            model=os.environ.get("TANGOCHO_TRANSLATION_MODEL", DEFAULT_TRANSLATION_MODEL),
            temperature=1.0,
            key_name="OPENAI_API_KEY",
        )
