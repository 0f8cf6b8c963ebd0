from __future__ import annotations

from .api.read_topic import read_topic
from .core.config import ReadTopicConfig
from .core.errors import TopicWalkError
from .core.models import DecodedEntry, SegmentDescriptor, WalkResult, WalkStatus
from .decoding.message import decode_payload
from .orchestration.orchestrator import walk
from .orchestration.utils import build_segment_index, compute_resume_point

__all__ = [
    "walk",
    "read_topic",
    "build_segment_index",
    "compute_resume_point",
    "decode_payload",
    "ReadTopicConfig",
    "TopicWalkError",
    "DecodedEntry",
    "SegmentDescriptor",
    "WalkResult",
    "WalkStatus",
]
