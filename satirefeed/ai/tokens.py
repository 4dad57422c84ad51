"""Rough token counting for rate budget sizing."""

import math
from typing import Optional

# Average characters per token for English-like text
CHARS_PER_TOKEN = 4


def estimate_tokens(text: Optional[str]) -> int:
    """Approximate token count of ``text``.

    Only used to size requests against the rate budget, so a cheap
    character heuristic is enough. Never raises.
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)
