"""
Processing Module
=================

Article processing pipeline from feeds to satirical posts.
"""

from .pipeline import NO_CONTEXT_MESSAGE, PipelineResult, ProcessingPipeline

__all__ = ["NO_CONTEXT_MESSAGE", "PipelineResult", "ProcessingPipeline"]
