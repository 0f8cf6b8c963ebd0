"""Local storage backends for topic metadata and segments.

This package provides:
- FileTopicMetadataStore: JSONL segment manifest and subscription journal
- ParquetSegmentStore: read-only Parquet segment files
"""

from topicwalk.storage.metadata import FileTopicMetadataStore
from topicwalk.storage.segments import ParquetSegmentStore, SegmentsDir

__all__ = [
    "FileTopicMetadataStore",
    "ParquetSegmentStore",
    "SegmentsDir",
]
