"""Segment index and resume point helpers.

Functions
---------
- build_segment_index: stitch segment descriptors into a contiguous SegmentIndex.
- compute_resume_point: pick the first sequence id still to deliver.

All ranges are inclusive on both ends: [start, end].
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from topicwalk.core.constants import FIRST_SEQ_ID
from topicwalk.core.errors import MetadataInconsistencyError, NoSegmentsError
from topicwalk.core.models import (
    ResumePoint,
    ResumeStatus,
    Segment,
    SegmentDescriptor,
    SegmentIndex,
)


def build_segment_index(
    descriptors: Sequence[SegmentDescriptor],
    *,
    topic: str | None = None,
) -> SegmentIndex:
    """Derive each segment's start and build the index.

    Parameters
    ----------
    descriptors : Sequence[SegmentDescriptor]
        Segments in the metadata store's (chronological) order.
    topic : str | None
        Only used to enrich error messages.

    Raises
    ------
    NoSegmentsError
        If `descriptors` is empty.
    MetadataInconsistencyError
        If an open segment is not the last one, or a closed segment ends
        before its predecessor.
    """
    if not descriptors:
        raise NoSegmentsError(topic)

    segments: list[Segment] = []
    running_start = FIRST_SEQ_ID
    last = len(descriptors) - 1
    for pos, desc in enumerate(descriptors):
        if desc.end_seq_id is None:
            if pos != last:
                raise MetadataInconsistencyError(
                    f"Segment {desc.segment_id} for topic {topic} is open but is not the last segment for the topic",
                    segment_id=desc.segment_id,
                    topic=topic,
                )
            segments.append(Segment(desc.segment_id, running_start, None))
            continue

        # end == running_start - 1 is an empty segment
        if desc.end_seq_id < running_start - 1:
            raise MetadataInconsistencyError(
                f"Segment {desc.segment_id} for topic {topic} ends at {desc.end_seq_id}, "
                f"before its predecessor ends at {running_start - 1}",
                segment_id=desc.segment_id,
                topic=topic,
            )
        segments.append(Segment(desc.segment_id, running_start, desc.end_seq_id))
        running_start = desc.end_seq_id + 1

    return SegmentIndex(tuple(segments))


def compute_resume_point(
    consumed: Mapping[str, int | None],
    requested_start: int = FIRST_SEQ_ID,
) -> ResumePoint:
    """Return the first sequence id not yet consumed by every subscriber.

    With no subscribers the requested start is used as is. Otherwise the walk
    starts right after the least-advanced subscriber, or later if asked to.
    A subscriber that never consumed anything counts as 0.
    """
    if requested_start < FIRST_SEQ_ID:
        raise ValueError(f"requested_start must be >= {FIRST_SEQ_ID}")
    if not consumed:
        return ResumePoint(seq_id=requested_start, status=ResumeStatus.NO_SUBSCRIBERS)

    # min keeps the first of equal markers
    least_subscriber, least_consumed = min(consumed.items(), key=lambda kv: kv[1] or 0)
    return ResumePoint(
        seq_id=max(requested_start, (least_consumed or 0) + 1),
        status=ResumeStatus.OK,
        least_subscriber=least_subscriber,
    )
