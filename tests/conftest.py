"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for SatireFeed tests.
"""

import asyncio
import os
from datetime import datetime, timezone

import pytest

# Set test environment variables before any imports
os.environ["SATIREFEED_HISTORY__FILE_PATH"] = ""
os.environ["SATIREFEED_LOGGING__FILE_PATH"] = ""
os.environ["SATIREFEED_DEBUG"] = "true"

from satirefeed.config.settings import (  # noqa: E402
    AISettings,
    ProcessingSettings,
    SatireFeedSettings,
    SearchSettings,
)
from satirefeed.models import ContentItem  # noqa: E402
from satirefeed.utils.clock import Clock  # noqa: E402


class FakeClock(Clock):
    """Clock whose sleep advances virtual time instantly."""

    def __init__(self, start: float = 1000.0):
        self.current = start
        self.sleeps = []

    def now(self) -> float:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += max(seconds, 0.0)
        await asyncio.sleep(0)


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def fake_clock():
    """Virtual clock starting at t=1000."""
    return FakeClock()


@pytest.fixture
def test_settings():
    """Settings isolated from the environment and any .env file."""
    return SatireFeedSettings(
        _env_file=None,
        ai=AISettings(ollama_model="llama3"),
        processing=ProcessingSettings(pacing_delay_seconds=2.0),
        search=SearchSettings(tavily_api_key="test-tavily-key"),
    )


@pytest.fixture
def sample_item():
    """A single feed item."""
    return ContentItem(
        title="Parliament votes to rename Tuesday",
        body="In a surprise session, lawmakers approved renaming Tuesday to Second Monday.",
        source_url="https://news.example.com/tuesday",
        published_at=datetime(2025, 3, 4, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def sample_posts():
    """Five post texts as a model would return them."""
    return [
        "Tuesday renamed. Wednesday reportedly lawyering up. 🗓️",
        "Finally, a bill that passed unanimously: nobody liked Tuesday anyway.",
        "Second Monday: because one Monday a week wasn't punishing enough. 😩",
        "Lawmakers spend session renaming days instead of fixing them.",
        "Calendar makers thank parliament for the stimulus package. 📅",
    ]
