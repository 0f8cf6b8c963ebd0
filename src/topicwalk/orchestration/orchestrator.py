"""Topic walk orchestrator: metadata → segment index → resume point → walker.

This module provides the application-layer entry point `walk(...)`:
   - Depends ONLY on interfaces (ITopicMetadataStore, ISegmentStore).
   - Does NOT instantiate file or Parquet stores (see `topicwalk.api`).
   - Maps every classified failure onto a `WalkResult` status.
"""

from __future__ import annotations

import logging

from topicwalk.core.constants import DEFAULT_BATCH_SIZE, FIRST_SEQ_ID
from topicwalk.core.errors import MetadataInconsistencyError, NoSegmentsError
from topicwalk.core.interfaces import (
    ContinuePrompt,
    EntrySink,
    ISegmentStore,
    ITopicMetadataStore,
    PayloadDecoder,
    SegmentListener,
    always_continue,
)
from topicwalk.core.models import ResumeStatus, WalkResult, WalkState, WalkStatus
from topicwalk.core.use_cases.read_topic import StreamWalker, WalkConfig
from topicwalk.decoding.message import decode_payload
from topicwalk.orchestration.utils import build_segment_index, compute_resume_point

logger = logging.getLogger(__name__)


async def walk(
    *,
    topic: str,
    metadata_store: ITopicMetadataStore,
    segment_store: ISegmentStore,
    sink: EntrySink,
    start_seq_id: int = FIRST_SEQ_ID,
    interactive: bool = False,
    prompt: ContinuePrompt = always_continue,
    batch_size: int = DEFAULT_BATCH_SIZE,
    decoder: PayloadDecoder = decode_payload,
    on_segment: SegmentListener | None = None,
) -> WalkResult:
    """Read every not-yet-consumed message of `topic`, in order.

    This function:
    - Checks the topic exists.
    - Builds the segment index from the store's segment list.
    - Computes the resume point from subscriber markers and `start_seq_id`.
    - Runs the `StreamWalker` from that point.

    Returns
    -------
    WalkResult
        NO_TOPIC / NO_SEGMENTS when there is nothing to read, FATAL with the
        error for inconsistent metadata or corrupted segments, otherwise
        COMPLETED or STOPPED_BY_OPERATOR.

    Raises
    ------
    ValueError
        If `batch_size` or `start_seq_id` is below 1.
    """
    config = WalkConfig(topic=topic, batch_size=batch_size, interactive=interactive)
    if start_seq_id < FIRST_SEQ_ID:
        raise ValueError(f"start_seq_id must be >= {FIRST_SEQ_ID}")

    # 1) Topic
    if not await metadata_store.topic_exists(topic):
        logger.info("no topic %s found", topic)
        return WalkResult(status=WalkStatus.NO_TOPIC)

    # 2) Segment index
    descriptors = await metadata_store.list_segments(topic)
    try:
        index = build_segment_index(descriptors, topic=topic)
    except NoSegmentsError:
        logger.info("no message is published to topic %s", topic)
        return WalkResult(status=WalkStatus.NO_SEGMENTS)
    except MetadataInconsistencyError as e:
        logger.error("read messages of topic %s failed: %s", topic, e.message)
        return WalkResult(status=WalkStatus.FATAL, error=e)

    # 3) Resume point
    consumed = await metadata_store.list_subscriber_states(topic)
    resume_point = compute_resume_point(consumed, start_seq_id)
    if resume_point.status is ResumeStatus.NO_SUBSCRIBERS:
        logger.info("topic %s has no subscribers, reading from %s", topic, resume_point.seq_id)
    else:
        logger.info(
            "topic %s resumes at %s (least subscriber %s)",
            topic,
            resume_point.seq_id,
            resume_point.least_subscriber,
        )

    # 4) Walk
    walker = StreamWalker(store=segment_store, decoder=decoder)
    output = await walker.run(
        config=config,
        index=index,
        state=WalkState(cursor=resume_point.seq_id),
        sink=sink,
        prompt=prompt,
        on_segment=on_segment,
    )

    return WalkResult(
        status=output.status,
        resume_point=resume_point,
        final_state=output.state,
        stats=output.stats,
        warnings=output.warnings,
        error=output.error,
    )
