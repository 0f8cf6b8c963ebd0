"""
Exceptions raised while reading a topic.

Every failure the walk knows how to classify derives from `TopicWalkError`
and carries a `details` dict (topic, segment id, sequence-id range, ...)
so it can be diagnosed without re-running the walk.
"""

from __future__ import annotations

from typing import Any


class TopicWalkError(Exception):
    """Base exception for all topic walk errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


class MetadataInconsistencyError(TopicWalkError):
    """Raised when the segment list of a topic cannot form a contiguous index."""

    def __init__(self, message: str, *, segment_id: int, topic: str | None = None):
        details: dict[str, Any] = {"segment_id": segment_id}
        if topic is not None:
            details["topic"] = topic
        super().__init__(message, details)
        self.segment_id = segment_id


class NoSegmentsError(TopicWalkError):
    """Raised when a topic has no segments, i.e. nothing was ever published."""

    def __init__(self, topic: str | None = None):
        super().__init__(
            f"No message is published to topic {topic}" if topic else "No segments",
            {"topic": topic} if topic else {},
        )
        self.topic = topic


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class SegmentUnavailableError(TopicWalkError):
    """Raised when a segment cannot be opened (missing or reclaimed)."""

    def __init__(self, segment_id: int, cause: Exception | None = None):
        details: dict[str, Any] = {"segment_id": segment_id}
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(
            f"No segment {segment_id} found, maybe garbage collected because its messages were consumed",
            details,
        )
        self.segment_id = segment_id


class ReadError(TopicWalkError):
    """Raised by a segment handle when a range of entries cannot be read."""

    def __init__(self, segment_id: int, first_entry_id: int, last_entry_id: int, reason: str):
        super().__init__(
            f"Reading entries [{first_entry_id} ~ {last_entry_id}] of segment {segment_id} failed: {reason}",
            {
                "segment_id": segment_id,
                "first_entry_id": first_entry_id,
                "last_entry_id": last_entry_id,
            },
        )
        self.segment_id = segment_id
        self.first_entry_id = first_entry_id
        self.last_entry_id = last_entry_id


class SegmentCorruptedError(TopicWalkError):
    """Raised when a closed segment fails to read; closed segments must be fully readable."""

    def __init__(self, *, topic: str, segment_id: int, first_seq_id: int, last_seq_id: int):
        super().__init__(
            f"Segment {segment_id} of topic {topic} may be corrupted, "
            f"reading messages [{first_seq_id} ~ {last_seq_id}] failed",
            {
                "topic": topic,
                "segment_id": segment_id,
                "first_seq_id": first_seq_id,
                "last_seq_id": last_seq_id,
            },
        )
        self.segment_id = segment_id


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


class MalformedEntryError(TopicWalkError):
    """Raised by a payload decoder when an entry cannot be decoded."""

    def __init__(self, entry_id: int, cause: Exception | None = None):
        details: dict[str, Any] = {"entry_id": entry_id}
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(f"Unreadable message found at entry {entry_id}", details)
        self.entry_id = entry_id


class OrderingViolationError(TopicWalkError):
    """Raised when entry ids or sequence ids of a segment are out of order."""

    def __init__(
        self,
        *,
        topic: str,
        segment_id: int,
        expected_entry_id: int,
        entry_id: int,
        seq_id: int,
    ):
        super().__init__(
            f"Message ids are out of order in segment {segment_id} of topic {topic}: "
            f"expected entry id {expected_entry_id}, current entry id {entry_id}, msg seq id {seq_id}",
            {
                "topic": topic,
                "segment_id": segment_id,
                "expected_entry_id": expected_entry_id,
                "entry_id": entry_id,
                "seq_id": seq_id,
            },
        )
        self.segment_id = segment_id
        self.expected_entry_id = expected_entry_id
        self.entry_id = entry_id
        self.seq_id = seq_id
