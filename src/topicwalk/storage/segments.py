from __future__ import annotations

import asyncio
from pathlib import Path
from typing import BinaryIO

import pyarrow as pa
import pyarrow.parquet as pq

from topicwalk.core.errors import ReadError, SegmentUnavailableError
from topicwalk.core.interfaces import ISegmentHandle, ISegmentStore
from topicwalk.core.models import RawEntry
from topicwalk.storage.metadata import topic_dir

ENTRY_COLUMNS = ["entry_id", "payload"]


class SegmentsDir:
    """Location of a topic's segment files: `<root>/<topic>/segments/`."""

    def __init__(self, *, root: Path, topic: str):
        self.topic = topic
        self.segments_dir = topic_dir(root, topic) / "segments"

    def segment_path(self, segment_id: int) -> Path:
        return self.segments_dir / f"segment_{segment_id:05d}.parquet"


class ParquetSegmentHandle(ISegmentHandle):
    """
    Read-only handle on one Parquet segment file.

    Rows are entries in physical order. Only the row groups covering a
    requested range are read; nothing is cached past the handle's lifetime.
    """

    def __init__(self, segment_id: int, source: BinaryIO, pf: pq.ParquetFile) -> None:
        self.segment_id = segment_id
        self._source = source
        self._pf = pf
        self._num_rows = pf.metadata.num_rows

        # first row of each row group
        self._group_starts: list[int] = []
        self._group_rows: list[int] = []
        row = 0
        for i in range(pf.metadata.num_row_groups):
            n = pf.metadata.row_group(i).num_rows
            self._group_starts.append(row)
            self._group_rows.append(n)
            row += n

    @property
    def last_entry_id(self) -> int:
        return self._num_rows - 1

    def _groups_covering(self, first: int, last: int) -> list[int]:
        return [
            i
            for i, (start, n) in enumerate(zip(self._group_starts, self._group_rows))
            if start <= last and start + n > first
        ]

    def _read_range(self, first: int, last: int) -> list[RawEntry]:
        groups = self._groups_covering(first, last)
        try:
            table = self._pf.read_row_groups(groups, columns=ENTRY_COLUMNS)
        except (pa.ArrowException, OSError) as e:
            raise ReadError(self.segment_id, first, last, str(e)) from e

        table = table.slice(first - self._group_starts[groups[0]], last - first + 1)
        entry_ids = table.column("entry_id").to_pylist()
        payloads = table.column("payload").to_pylist()
        return [RawEntry(entry_id=int(i), payload=p or b"") for i, p in zip(entry_ids, payloads)]

    async def read_entries(self, first_entry_id: int, last_entry_id: int) -> list[RawEntry]:
        if first_entry_id < 0 or last_entry_id < first_entry_id:
            raise ReadError(self.segment_id, first_entry_id, last_entry_id, "invalid range")
        if last_entry_id > self.last_entry_id:
            raise ReadError(
                self.segment_id,
                first_entry_id,
                last_entry_id,
                f"beyond last entry {self.last_entry_id}",
            )
        return await asyncio.to_thread(self._read_range, first_entry_id, last_entry_id)

    async def close(self) -> None:
        self._source.close()


class ParquetSegmentStore(ISegmentStore):
    """Segment store reading `segment_<id>.parquet` files of one topic."""

    def __init__(self, segments_dir: SegmentsDir) -> None:
        self.segments_dir = segments_dir

    @staticmethod
    def _open(segment_id: int, path: Path) -> ParquetSegmentHandle:
        try:
            source = open(path, "rb")
        except OSError as e:
            raise SegmentUnavailableError(segment_id, cause=e) from e
        try:
            pf = pq.ParquetFile(source)
            missing = [c for c in ENTRY_COLUMNS if c not in pf.schema_arrow.names]
            if missing:
                raise SegmentUnavailableError(segment_id, cause=ValueError(f"missing columns {missing}"))
        except (pa.ArrowException, OSError) as e:
            source.close()
            raise SegmentUnavailableError(segment_id, cause=e) from e
        except SegmentUnavailableError:
            source.close()
            raise
        return ParquetSegmentHandle(segment_id, source, pf)

    async def open_segment(self, segment_id: int, *, recovery: bool = False) -> ParquetSegmentHandle:
        if recovery:
            raise ValueError("segment recovery is not supported, segments are opened read-only")
        path = self.segments_dir.segment_path(segment_id)
        return await asyncio.to_thread(self._open, segment_id, path)
