"""Orchestration of a topic walk.

This package provides:
- Main entry point (walk) reading a topic from its resume point
- Segment index building from segment descriptors
- Resume point computation from subscriber markers
"""

from topicwalk.orchestration.orchestrator import walk
from topicwalk.orchestration.utils import build_segment_index, compute_resume_point

__all__ = [
    "walk",
    "build_segment_index",
    "compute_resume_point",
]
