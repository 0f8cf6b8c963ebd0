from __future__ import annotations

import asyncio
import json
from pathlib import Path

from pydantic import BaseModel

from topicwalk.core.interfaces import ITopicMetadataStore
from topicwalk.core.models import SegmentDescriptor

SEGMENTS_MANIFEST = "segments.jsonl"
SUBSCRIPTIONS_JOURNAL = "subscriptions.jsonl"


class SegmentRecord(BaseModel):
    segment_id: int
    end_seq_id: int | None = None


class SubscriptionRecord(BaseModel):
    subscriber_id: str
    consumed_seq_id: int | None = None


def topic_dir(root: Path, topic: str) -> Path:
    """Directory holding everything stored for `topic`."""
    if not topic or "/" in topic or "\\" in topic or topic in (".", ".."):
        raise ValueError(f"invalid topic name: {topic!r}")
    return root / topic


def _read_jsonl(path: Path) -> list[dict]:
    if not path.is_file():
        return []
    records: list[dict] = []
    with open(path) as f:
        for line in f:
            if not line.strip():
                continue
            records.append(json.loads(line))
    return records


class FileTopicMetadataStore(ITopicMetadataStore):
    """Topic metadata kept as JSONL files under `<root>/<topic>/`.

    - `segments.jsonl`: one segment per line, listed order is chronological.
    - `subscriptions.jsonl`: append-only journal; the last line of a
      subscriber wins.

    A topic exists when its directory exists. Missing files read as empty.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    async def topic_exists(self, topic: str) -> bool:
        return topic_dir(self.root, topic).is_dir()

    async def list_segments(self, topic: str) -> list[SegmentDescriptor]:
        path = topic_dir(self.root, topic) / SEGMENTS_MANIFEST
        rows = await asyncio.to_thread(_read_jsonl, path)
        return [
            SegmentDescriptor(segment_id=rec.segment_id, end_seq_id=rec.end_seq_id)
            for rec in (SegmentRecord.model_validate(row) for row in rows)
        ]

    async def list_subscriber_states(self, topic: str) -> dict[str, int | None]:
        path = topic_dir(self.root, topic) / SUBSCRIPTIONS_JOURNAL
        rows = await asyncio.to_thread(_read_jsonl, path)
        states: dict[str, int | None] = {}
        for row in rows:
            rec = SubscriptionRecord.model_validate(row)
            states[rec.subscriber_id] = rec.consumed_seq_id
        return states
