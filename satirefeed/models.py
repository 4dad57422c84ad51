"""
SatireFeed Data Models
=====================

Pydantic data models shared by the ingestion, AI and processing layers.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class AIProviderType(str, Enum):
    """Available AI providers."""
    GEMINI = "gemini"   # Hosted, server-side structured output
    GROQ = "groq"       # Hosted, fast inference with strict per-minute limits
    OLLAMA = "ollama"   # Local model server


# Groq models offered for post generation, in display order
GROQ_MODELS = {
    "openai/gpt-oss-20b": "GPT-OSS 20B",
    "llama-3.1-8b-instant": "Llama 3.1 8B Instant",
    "llama-3.3-70b-versatile": "Llama 3.3 70B Versatile",
    "openai/gpt-oss-120b": "GPT-OSS 120B",
}

DEFAULT_GROQ_MODEL = "openai/gpt-oss-20b"

# Posts requested per article
POSTS_PER_BATCH = 5


class ContentItem(BaseModel):
    """One unit of news content awaiting summarization."""
    title: str = Field(default="", description="Article title")
    body: str = Field(default="", description="Plain-text article content")
    source_url: str = Field(default="", description="Article link")
    published_at: Optional[datetime] = Field(default=None, description="Publication date")

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"ContentItem({self.title[:50]})"


class ProviderConfig(BaseModel):
    """Per-run provider credentials and model selection."""
    gemini_api_key: Optional[str] = Field(default=None, description="Google Gemini API key")
    groq_api_key: Optional[str] = Field(default=None, description="Groq API key")
    groq_model: Optional[str] = Field(default=None, description="Groq model id")
    ollama_model: Optional[str] = Field(default=None, description="Local Ollama model name")
    ollama_base_url: Optional[str] = Field(default=None, description="Ollama server URL")

    @field_validator('groq_model')
    @classmethod
    def validate_groq_model(cls, v):
        """Restrict Groq models to the supported set."""
        if v is not None and v not in GROQ_MODELS:
            raise ValueError(
                f"Unknown Groq model '{v}'. Supported: {', '.join(GROQ_MODELS)}"
            )
        return v

    @classmethod
    def from_settings(cls, settings, **overrides) -> "ProviderConfig":
        """Build a config from application settings, with explicit overrides."""
        data = {
            "gemini_api_key": settings.ai.gemini_api_key,
            "groq_api_key": settings.ai.groq_api_key,
            "groq_model": settings.ai.groq_model,
            "ollama_model": settings.ai.ollama_model,
            "ollama_base_url": settings.ai.ollama_base_url,
        }
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)

    def __repr__(self) -> str:
        # Never leak keys into logs
        return (
            f"ProviderConfig(gemini_api_key={'set' if self.gemini_api_key else None}, "
            f"groq_api_key={'set' if self.groq_api_key else None}, "
            f"groq_model={self.groq_model!r}, ollama_model={self.ollama_model!r})"
        )

    __str__ = __repr__


class GeneratedPost(BaseModel):
    """A single satirical short-form post."""
    text: str

    def __str__(self) -> str:
        return self.text


class ProcessedArticle(BaseModel):
    """Article with its generated summary and posts."""
    id: str
    title: str
    link: str = ""
    summary: str
    posts: List[GeneratedPost] = Field(default_factory=list)
    provider: Optional[AIProviderType] = None
    language: Optional[str] = None
    published_at: Optional[datetime] = None

    @property
    def is_degraded(self) -> bool:
        """Fewer posts than requested were produced."""
        return len(self.posts) < POSTS_PER_BATCH
