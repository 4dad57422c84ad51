"""
SatireFeed AI Processing Module
===============================

Multi-provider request orchestration for summaries and satirical posts using
Gemini, Groq and a local Ollama server, with a rate budget for Groq.
"""

from .providers.base import AIProvider
from .rate_budget import RateBudget
from .ai_manager import AIManager

__all__ = ["AIProvider", "RateBudget", "AIManager"]
