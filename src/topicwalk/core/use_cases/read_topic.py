from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum

from topicwalk.core.constants import DEFAULT_BATCH_SIZE
from topicwalk.core.errors import (
    MalformedEntryError,
    OrderingViolationError,
    ReadError,
    SegmentCorruptedError,
    SegmentUnavailableError,
    TopicWalkError,
)
from topicwalk.core.interfaces import (
    ContinuePrompt,
    EntrySink,
    ISegmentHandle,
    ISegmentStore,
    PayloadDecoder,
    SegmentListener,
    always_continue,
)
from topicwalk.core.models import (
    Segment,
    SegmentIndex,
    WalkState,
    WalkStats,
    WalkStatus,
    WalkWarning,
    WarningKind,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Domain configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WalkConfig:
    """
    Domain-level configuration for the stream walker.

    Free of infrastructure concerns (no paths, no store settings).
    """

    topic: str
    batch_size: int = DEFAULT_BATCH_SIZE
    interactive: bool = False

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")


# ---------------------------------------------------------------------------
# Walk context
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class WalkContext:
    """
    Collaborators and collectors shared by every step of one walk.

    Progress (cursor, current segment) is NOT kept here: it travels as a
    `WalkState` value returned from each step.
    """

    config: WalkConfig
    store: ISegmentStore
    decoder: PayloadDecoder
    sink: EntrySink
    prompt: ContinuePrompt
    on_segment: SegmentListener | None
    stats: WalkStats = field(default_factory=WalkStats)
    warnings: list[WalkWarning] = field(default_factory=list)

    def warn(self, warning: WalkWarning) -> None:
        logger.warning("%s", warning.message)
        self.warnings.append(warning)


class SegmentOutcome(str, Enum):
    """How reading one segment ended."""

    EXHAUSTED = "exhausted"  # every entry up to the bound was read
    UNAVAILABLE = "unavailable"  # could not be opened, skipped
    CAUGHT_UP = "caught_up"  # reached the live tail of the open segment
    STOPPED = "stopped"  # operator declined to continue


@dataclass(kw_only=True)
class WalkOutput:
    """What `StreamWalker.run` hands back to the orchestrator."""

    status: WalkStatus
    state: WalkState
    stats: WalkStats
    warnings: list[WalkWarning]
    error: TopicWalkError | None = None


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


async def _open_segment(ctx: WalkContext, segment: Segment) -> ISegmentHandle | None:
    """Open a segment read-only; None (with a warning) when it is gone."""
    try:
        handle = await ctx.store.open_segment(segment.segment_id, recovery=False)
    except SegmentUnavailableError as e:
        ctx.stats.segments_unavailable += 1
        ctx.warn(
            WalkWarning(
                kind=WarningKind.SEGMENT_UNAVAILABLE,
                message=e.message,
                segment_id=segment.segment_id,
            )
        )
        return None
    ctx.stats.segments_opened += 1
    return handle


def _segment_bound(segment: Segment, handle: ISegmentHandle) -> int:
    """Last sequence id to read: the closed end, or the observed tail when open."""
    if segment.end_seq_id is not None:
        return segment.end_seq_id
    return segment.start_seq_id + handle.last_entry_id


async def _read_batch(
    ctx: WalkContext,
    segment: Segment,
    handle: ISegmentHandle,
    first_seq_id: int,
    last_seq_id: int,
    expected_entry_id: int,
) -> int | None:
    """
    Read, validate and deliver one batch.

    Returns the next expected entry id, or None when the open segment has no
    more entries to give (live tail reached).
    """
    start = segment.start_seq_id
    try:
        entries = await handle.read_entries(first_seq_id - start, last_seq_id - start)
    except ReadError as e:
        if segment.is_open:
            logger.debug("open segment %s exhausted at %s: %s", segment.segment_id, first_seq_id, e.message)
            return None
        raise SegmentCorruptedError(
            topic=ctx.config.topic,
            segment_id=segment.segment_id,
            first_seq_id=first_seq_id,
            last_seq_id=last_seq_id,
        ) from e

    if not entries and segment.is_open:
        return None

    for raw in entries:
        try:
            entry = ctx.decoder(raw)
        except MalformedEntryError as e:
            ctx.stats.entries_malformed += 1
            ctx.warn(
                WalkWarning(
                    kind=WarningKind.MALFORMED_ENTRY,
                    message=f"{e.message} in segment {segment.segment_id}",
                    segment_id=segment.segment_id,
                    entry_id=raw.entry_id,
                )
            )
            expected_entry_id += 1
            continue

        if raw.entry_id != expected_entry_id or entry.sequence_id - start != expected_entry_id:
            raise OrderingViolationError(
                topic=ctx.config.topic,
                segment_id=segment.segment_id,
                expected_entry_id=expected_entry_id,
                entry_id=raw.entry_id,
                seq_id=entry.sequence_id,
            )
        expected_entry_id += 1
        ctx.sink(entry)
        ctx.stats.entries_delivered += 1

    return expected_entry_id


async def walk_segment(
    ctx: WalkContext,
    state: WalkState,
    segment: Segment,
) -> tuple[WalkState, SegmentOutcome]:
    """
    Read one segment from `state.cursor` up to its bound.

    Returns the advanced state and how the segment ended. An ordering
    violation or an unreadable closed segment is raised.
    """
    state = replace(state, current_segment=segment)
    if ctx.on_segment is not None:
        ctx.on_segment(segment)

    handle = await _open_segment(ctx, segment)
    if handle is None:
        if segment.end_seq_id is not None:
            state = replace(state, cursor=segment.end_seq_id + 1)
        return state, SegmentOutcome.UNAVAILABLE

    try:
        t_end = _segment_bound(segment, handle)
        expected_entry_id = state.cursor - segment.start_seq_id
        logger.info(
            "reading segment %s %s from %s",
            segment.segment_id,
            segment.describe_range(),
            state.cursor,
        )

        while state.cursor <= t_end:
            batch_end = min(state.cursor + ctx.config.batch_size - 1, t_end)
            next_expected = await _read_batch(ctx, segment, handle, state.cursor, batch_end, expected_entry_id)
            if next_expected is None:
                return state, SegmentOutcome.CAUGHT_UP
            expected_entry_id = next_expected
            ctx.stats.batches += 1
            state = replace(state, cursor=batch_end + 1)

            if ctx.config.interactive and not ctx.prompt():
                return state, SegmentOutcome.STOPPED
    finally:
        await handle.close()

    if segment.is_open:
        return state, SegmentOutcome.CAUGHT_UP
    return replace(state, cursor=t_end + 1), SegmentOutcome.EXHAUSTED


# ---------------------------------------------------------------------------
# Domain service – StreamWalker
# ---------------------------------------------------------------------------


class StreamWalker:
    """
    Walks a topic's segments in ascending order from a resume point.

    It depends only on the segment store interface and a payload decoder;
    the segment index and resume point are computed by the caller.
    """

    def __init__(self, store: ISegmentStore, decoder: PayloadDecoder) -> None:
        self._store = store
        self._decoder = decoder

    async def run(
        self,
        *,
        config: WalkConfig,
        index: SegmentIndex,
        state: WalkState,
        sink: EntrySink,
        prompt: ContinuePrompt = always_continue,
        on_segment: SegmentListener | None = None,
    ) -> WalkOutput:
        """
        Deliver every entry from `state.cursor` on, segment by segment.

        Parameters
        ----------
        config : WalkConfig
            Topic, batch size and whether to prompt between batches.
        index : SegmentIndex
            Contiguous segments of the topic.
        state : WalkState
            Where to start; usually `WalkState(cursor=resume_point.seq_id)`.
        sink : EntrySink
            Receives decoded entries in ascending sequence-id order.
        prompt : ContinuePrompt
            Asked after each batch when `config.interactive` is set.

        Notes
        -----
        - An ordering violation or an unreadable closed segment aborts the walk:
          nothing is delivered afterwards and the output has status FATAL.
        - Unavailable segments and malformed entries only add warnings.
        """
        ctx = WalkContext(
            config=config,
            store=self._store,
            decoder=self._decoder,
            sink=sink,
            prompt=prompt,
            on_segment=on_segment,
        )

        # segments ending before the cursor are fully consumed and never opened
        remaining = list(index.segments_from(state.cursor))
        ctx.stats.segments_skipped = len(index) - len(remaining)

        status = WalkStatus.COMPLETED
        error: TopicWalkError | None = None
        try:
            for segment in remaining:
                state, outcome = await walk_segment(ctx, state, segment)
                if outcome is SegmentOutcome.STOPPED:
                    logger.info("walk of topic %s stopped by operator at %s", config.topic, state.cursor)
                    status = WalkStatus.STOPPED_BY_OPERATOR
                    break
                if outcome is SegmentOutcome.CAUGHT_UP:
                    break
        except (OrderingViolationError, SegmentCorruptedError) as e:
            logger.error("read messages of topic %s failed: %s", config.topic, e.message)
            status = WalkStatus.FATAL
            error = e

        return WalkOutput(
            status=status,
            state=state,
            stats=ctx.stats,
            warnings=ctx.warnings,
            error=error,
        )
