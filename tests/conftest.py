import json
from collections.abc import Callable, Sequence
from pathlib import Path
from unittest.mock import AsyncMock

import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from topicwalk.core.errors import ReadError, SegmentUnavailableError
from topicwalk.core.models import RawEntry, SegmentDescriptor


def message_payload(seq_id: int | None, body: str | None = None, src_region: str | None = None) -> bytes:
    msg: dict = {}
    if seq_id is not None:
        msg["msg_id"] = {"local_component": seq_id}
    if body is not None:
        msg["body"] = body
    if src_region is not None:
        msg["src_region"] = src_region
    return json.dumps(msg).encode()


class FakeSegmentHandle:
    def __init__(self, segment_id: int, entries: list[RawEntry], failing_reads: set[int]) -> None:
        self.segment_id = segment_id
        self._entries = entries
        self._failing_reads = failing_reads
        self.reads: list[tuple[int, int]] = []
        self.closed = False

    @property
    def last_entry_id(self) -> int:
        return len(self._entries) - 1

    async def read_entries(self, first_entry_id: int, last_entry_id: int) -> list[RawEntry]:
        self.reads.append((first_entry_id, last_entry_id))
        if first_entry_id in self._failing_reads or last_entry_id > self.last_entry_id:
            raise ReadError(self.segment_id, first_entry_id, last_entry_id, "injected")
        return self._entries[first_entry_id : last_entry_id + 1]

    async def close(self) -> None:
        self.closed = True


class FakeSegmentStore:
    """In-memory segment store recording every open and read."""

    def __init__(self) -> None:
        self.segments: dict[int, list[RawEntry]] = {}
        self.failing_reads: dict[int, set[int]] = {}
        self.opened: list[int] = []
        self.handles: dict[int, FakeSegmentHandle] = {}

    def add(self, segment_id: int, entries: list[RawEntry]) -> None:
        self.segments[segment_id] = entries

    def fail_read(self, segment_id: int, first_entry_id: int) -> None:
        self.failing_reads.setdefault(segment_id, set()).add(first_entry_id)

    async def open_segment(self, segment_id: int, *, recovery: bool = False) -> FakeSegmentHandle:
        assert recovery is False
        self.opened.append(segment_id)
        if segment_id not in self.segments:
            raise SegmentUnavailableError(segment_id)
        handle = FakeSegmentHandle(segment_id, self.segments[segment_id], self.failing_reads.get(segment_id, set()))
        self.handles[segment_id] = handle
        return handle


@pytest.fixture
def make_entries() -> Callable[..., list[RawEntry]]:
    """Contiguous, validly indexed entries: entry i holds seq id `first_seq_id + i`."""

    def _make(first_seq_id: int, count: int) -> list[RawEntry]:
        return [
            RawEntry(entry_id=i, payload=message_payload(first_seq_id + i, body=f"m{first_seq_id + i}"))
            for i in range(count)
        ]

    return _make


@pytest.fixture
def payload() -> Callable[..., bytes]:
    return message_payload


@pytest.fixture
def segment_store() -> FakeSegmentStore:
    return FakeSegmentStore()


@pytest.fixture
def metadata_store():
    store = AsyncMock()
    store.topic_exists = AsyncMock(return_value=True)
    store.list_segments = AsyncMock(return_value=[SegmentDescriptor(1, 40)])
    store.list_subscriber_states = AsyncMock(return_value={})
    return store


def write_segment_file(path: Path, first_seq_id: int, count: int, row_group_size: int = 4) -> None:
    table = pa.table(
        {
            "entry_id": pa.array(range(count), type=pa.uint64()),
            "payload": pa.array(
                [message_payload(first_seq_id + i, body=f"m{first_seq_id + i}") for i in range(count)],
                type=pa.binary(),
            ),
        }
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    pq.write_table(table, path, row_group_size=row_group_size)


@pytest.fixture
def write_topic(tmp_path: Path) -> Callable[..., Path]:
    """Lay out a topic under `tmp_path` the way the file-backed stores read it.

    `segments` maps segment id to (end_seq_id, entry count or None for no file).
    """

    def _write(
        topic: str,
        segments: dict[int, tuple[int | None, int | None]],
        subscriptions: Sequence[tuple[str, int | None]] = (),
    ) -> Path:
        tdir = tmp_path / topic
        tdir.mkdir()
        start = 1
        with open(tdir / "segments.jsonl", "w") as f:
            for segment_id, (end_seq_id, count) in segments.items():
                f.write(json.dumps({"segment_id": segment_id, "end_seq_id": end_seq_id}) + "\n")
                if count is not None:
                    write_segment_file(tdir / "segments" / f"segment_{segment_id:05d}.parquet", start, count)
                if end_seq_id is not None:
                    start = end_seq_id + 1
        with open(tdir / "subscriptions.jsonl", "w") as f:
            for subscriber_id, consumed in subscriptions:
                f.write(json.dumps({"subscriber_id": subscriber_id, "consumed_seq_id": consumed}) + "\n")
        return tmp_path

    return _write
