"""
AI Providers Module
==================

Interchangeable LLM backends for summarization and satirical post generation.
"""

from .base import AIProvider, strip_code_fences
from .gemini_provider import GeminiProvider
from .groq_provider import GroqProvider
from .ollama_provider import OllamaProvider

__all__ = [
    'AIProvider',
    'strip_code_fences',
    'GeminiProvider',
    'GroqProvider',
    'OllamaProvider'
]
