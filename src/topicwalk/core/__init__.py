"""Core data models, configuration, interfaces and errors.

This package provides:
- Data models (Segment, SegmentIndex, ResumePoint, DecodedEntry, WalkState, WalkResult)
- Configuration (ReadTopicConfig)
- Exceptions rooted at TopicWalkError
"""

from topicwalk.core.config import ReadTopicConfig
from topicwalk.core.errors import TopicWalkError
from topicwalk.core.models import (
    DecodedEntry,
    RawEntry,
    ResumePoint,
    Segment,
    SegmentDescriptor,
    SegmentIndex,
    WalkResult,
    WalkState,
    WalkStatus,
)

__all__ = [
    "ReadTopicConfig",
    "TopicWalkError",
    "DecodedEntry",
    "RawEntry",
    "ResumePoint",
    "Segment",
    "SegmentDescriptor",
    "SegmentIndex",
    "WalkResult",
    "WalkState",
    "WalkStatus",
]
