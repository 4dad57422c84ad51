"""
Storage Layer
=============

Processed-article history, kept across runs.
"""

from .history import ProcessedLinkStore

__all__ = ["ProcessedLinkStore"]
