"""Core data models for walking a segmented topic.

This module defines:
- `SegmentDescriptor` / `Segment` / `SegmentIndex`: where a topic's messages live.
- `ResumePoint`: the first sequence id still to deliver.
- `RawEntry` / `DecodedEntry`: what storage returns and what the walk emits.
- `WalkState`: the only progress a walk carries between steps.
- `WalkResult` / `WalkStats` / `WalkWarning`: what a walk reports back.

Design notes
------------
- An open segment has `end_seq_id=None`; it sorts after every closed segment.
- `WalkState` is frozen: every step returns a new value instead of mutating.
- `WalkStats` is a plain counter bag, mutated as the walk goes.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

# === Segments ===


@dataclass(slots=True, frozen=True)
class SegmentDescriptor:
    """One segment as listed by the metadata store (no start, optional end)."""

    segment_id: int
    end_seq_id: int | None = None  # None: open, still appended to

    @property
    def is_open(self) -> bool:
        return self.end_seq_id is None


@dataclass(slots=True, frozen=True)
class Segment:
    """A segment with its derived, inclusive sequence-id range."""

    segment_id: int
    start_seq_id: int
    end_seq_id: int | None = None

    @property
    def is_open(self) -> bool:
        return self.end_seq_id is None

    def contains(self, seq_id: int) -> bool:
        if seq_id < self.start_seq_id:
            return False
        return self.end_seq_id is None or seq_id <= self.end_seq_id

    def describe_range(self) -> str:
        end = "" if self.end_seq_id is None else str(self.end_seq_id)
        return f"[ {self.start_seq_id} ~ {end} ]"


class SegmentIndex:
    """Immutable, contiguous segments of a topic ordered by upper bound.

    Built by `build_segment_index`; the open segment (if any) is last.
    """

    __slots__ = ("_segments", "_closed_ends")

    def __init__(self, segments: tuple[Segment, ...]) -> None:
        self._segments = segments
        self._closed_ends = [s.end_seq_id for s in segments if s.end_seq_id is not None]

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __getitem__(self, i: int) -> Segment:
        return self._segments[i]

    def __repr__(self) -> str:
        return f"SegmentIndex({list(self._segments)!r})"

    @property
    def segments(self) -> tuple[Segment, ...]:
        return self._segments

    @property
    def open_segment(self) -> Segment | None:
        if self._segments and self._segments[-1].is_open:
            return self._segments[-1]
        return None

    @property
    def last_closed_seq_id(self) -> int:
        """Upper bound of the last closed segment (0 if none is closed)."""
        return self._closed_ends[-1] if self._closed_ends else 0

    def _first_position_from(self, seq_id: int) -> int:
        # first closed segment with end >= seq_id; the open one follows every closed one
        return bisect.bisect_left(self._closed_ends, seq_id)

    def segments_from(self, seq_id: int) -> Iterator[Segment]:
        """Yield segments whose upper bound is >= `seq_id`, ascending."""
        for i in range(self._first_position_from(seq_id), len(self._segments)):
            yield self._segments[i]

    def find(self, seq_id: int) -> Segment | None:
        """Return the segment holding `seq_id`, or None if no segment does."""
        for segment in self.segments_from(seq_id):
            return segment if segment.contains(seq_id) else None
        return None


# === Subscribers & resume point ===


@dataclass(slots=True, frozen=True)
class SubscriberState:
    """Last sequence id a subscriber has fully consumed (None: nothing yet)."""

    subscriber_id: str
    consumed_seq_id: int | None = None


class ResumeStatus(str, Enum):
    OK = "ok"
    NO_SUBSCRIBERS = "no_subscribers"


@dataclass(slots=True, frozen=True)
class ResumePoint:
    """Next sequence id to deliver, and how it was chosen."""

    seq_id: int
    status: ResumeStatus = ResumeStatus.OK
    least_subscriber: str | None = None


# === Entries ===


@dataclass(slots=True, frozen=True)
class RawEntry:
    """An entry as stored: physical index inside its segment plus raw bytes."""

    entry_id: int
    payload: bytes


@dataclass(slots=True, frozen=True)
class DecodedEntry:
    """A decoded message ready for the output sink."""

    entry_id: int  # physical index inside the segment
    local_seq_id: int | None
    payload: bytes | None = None
    src_region: str | None = None
    remote_seq_ids: tuple[tuple[str, int], ...] = ()
    has_msg_id: bool = False  # the message carried a msg_id, possibly empty

    @property
    def sequence_id(self) -> int:
        return self.local_seq_id or 0


# === Walk ===


@dataclass(slots=True, frozen=True)
class WalkState:
    """Progress of a walk: the next sequence id and the segment being read."""

    cursor: int
    current_segment: Segment | None = None


class WalkStatus(str, Enum):
    COMPLETED = "completed"
    NO_TOPIC = "no_topic"
    NO_SEGMENTS = "no_segments"
    STOPPED_BY_OPERATOR = "stopped_by_operator"
    FATAL = "fatal"


class WarningKind(str, Enum):
    SEGMENT_UNAVAILABLE = "segment_unavailable"
    MALFORMED_ENTRY = "malformed_entry"


@dataclass(slots=True, frozen=True)
class WalkWarning:
    """A non-fatal problem surfaced during the walk."""

    kind: WarningKind
    message: str
    segment_id: int
    entry_id: int | None = None


@dataclass(kw_only=True)
class WalkStats:
    """Counters collected while walking."""

    segments_opened: int = 0
    segments_skipped: int = 0
    segments_unavailable: int = 0
    batches: int = 0
    entries_delivered: int = 0
    entries_malformed: int = 0


@dataclass(kw_only=True)
class WalkResult:
    """Outcome of a walk over one topic."""

    status: WalkStatus
    resume_point: ResumePoint | None = None
    final_state: WalkState | None = None
    stats: WalkStats = field(default_factory=WalkStats)
    warnings: list[WalkWarning] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status in (WalkStatus.COMPLETED, WalkStatus.STOPPED_BY_OPERATOR)
