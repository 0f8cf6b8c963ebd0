from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from topicwalk.core.errors import MetadataInconsistencyError
from topicwalk.core.models import DecodedEntry, ResumeStatus, SegmentDescriptor, WalkStatus
from topicwalk.orchestration.orchestrator import walk


@pytest.mark.asyncio
async def test_missing_topic(metadata_store: Any, segment_store: Any) -> None:
    metadata_store.topic_exists.return_value = False

    result = await walk(
        topic="orders", metadata_store=metadata_store, segment_store=segment_store, sink=print
    )

    assert result.status is WalkStatus.NO_TOPIC
    assert not result.ok
    metadata_store.list_segments.assert_not_awaited()
    assert segment_store.opened == []


@pytest.mark.asyncio
async def test_topic_without_segments(metadata_store: Any, segment_store: Any) -> None:
    metadata_store.list_segments.return_value = []

    result = await walk(
        topic="orders", metadata_store=metadata_store, segment_store=segment_store, sink=print
    )

    assert result.status is WalkStatus.NO_SEGMENTS
    assert result.resume_point is None
    assert segment_store.opened == []


@pytest.mark.asyncio
async def test_inconsistent_metadata_opens_nothing(metadata_store: Any, segment_store: Any) -> None:
    metadata_store.list_segments.return_value = [
        SegmentDescriptor(1, None),
        SegmentDescriptor(2, 30),
    ]
    sink = MagicMock()

    result = await walk(
        topic="orders", metadata_store=metadata_store, segment_store=segment_store, sink=sink
    )

    assert result.status is WalkStatus.FATAL
    assert isinstance(result.error, MetadataInconsistencyError)
    assert result.error.details == {"segment_id": 1, "topic": "orders"}
    assert segment_store.opened == []
    sink.assert_not_called()


@pytest.mark.asyncio
async def test_no_subscribers_reads_from_requested_start(
    metadata_store: Any, segment_store: Any, make_entries: Any
) -> None:
    segment_store.add(1, make_entries(1, 40))
    out: list[DecodedEntry] = []

    result = await walk(
        topic="orders",
        metadata_store=metadata_store,
        segment_store=segment_store,
        sink=out.append,
        start_seq_id=31,
    )

    assert result.status is WalkStatus.COMPLETED
    assert result.resume_point.status is ResumeStatus.NO_SUBSCRIBERS
    assert [e.sequence_id for e in out] == list(range(31, 41))
    assert result.final_state.cursor == 41


@pytest.mark.asyncio
async def test_resumes_after_least_subscriber(
    metadata_store: Any, segment_store: Any, make_entries: Any
) -> None:
    metadata_store.list_segments.return_value = [
        SegmentDescriptor(1, 10),
        SegmentDescriptor(2, 25),
        SegmentDescriptor(3, None),
    ]
    metadata_store.list_subscriber_states.return_value = {"A": 5, "B": 12}
    segment_store.add(1, make_entries(1, 10))
    segment_store.add(2, make_entries(11, 15))
    segment_store.add(3, make_entries(26, 2))
    out: list[DecodedEntry] = []

    result = await walk(
        topic="orders", metadata_store=metadata_store, segment_store=segment_store, sink=out.append
    )

    assert result.ok
    assert result.resume_point.seq_id == 6
    assert result.resume_point.least_subscriber == "A"
    assert [e.sequence_id for e in out] == list(range(6, 28))
    assert result.stats.entries_delivered == 22
    assert result.stats.segments_opened == 3


@pytest.mark.asyncio
async def test_custom_decoder_is_used(metadata_store: Any, segment_store: Any, make_entries: Any) -> None:
    segment_store.add(1, make_entries(1, 40))

    with patch("topicwalk.orchestration.orchestrator.StreamWalker") as MockWalker:
        MockWalker.return_value.run = AsyncMock()
        decoder = AsyncMock()
        await walk(
            topic="orders",
            metadata_store=metadata_store,
            segment_store=segment_store,
            sink=print,
            decoder=decoder,
            batch_size=7,
        )

    MockWalker.assert_called_once_with(store=segment_store, decoder=decoder)
    config = MockWalker.return_value.run.await_args.kwargs["config"]
    assert config.batch_size == 7
    assert config.topic == "orders"


@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [{"batch_size": 0}, {"batch_size": -1}, {"start_seq_id": 0}])
async def test_invalid_arguments_rejected_before_reading(
    metadata_store: Any, segment_store: Any, make_entries: Any, kwargs: dict
) -> None:
    segment_store.add(1, make_entries(1, 40))

    with pytest.raises(ValueError):
        await walk(
            topic="orders",
            metadata_store=metadata_store,
            segment_store=segment_store,
            sink=print,
            **kwargs,
        )

    metadata_store.topic_exists.assert_not_awaited()
    assert segment_store.opened == []
