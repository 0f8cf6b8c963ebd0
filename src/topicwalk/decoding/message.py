"""Stored message schema and payload decoder.

Segment entries hold one JSON-encoded message each:

    {"msg_id": {"local_component": 12,
                "remote_components": [{"region": "r1", "seq_id": 4}]},
     "src_region": "r1",
     "body": "hello"}

`decode_payload` validates it and turns it into a `DecodedEntry`.
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel

from topicwalk.core.errors import MalformedEntryError
from topicwalk.core.models import DecodedEntry, RawEntry


class RegionSeqId(BaseModel):
    region: str
    seq_id: int


class MessageSeqId(BaseModel):
    local_component: int | None = None
    remote_components: Sequence[RegionSeqId] = ()


class Message(BaseModel):
    msg_id: MessageSeqId | None = None
    src_region: str | None = None
    body: str | None = None


def decode_payload(raw: RawEntry) -> DecodedEntry:
    """Decode one stored entry.

    Raises
    ------
    MalformedEntryError
        If the payload is not a valid JSON message.
    """
    try:
        message = Message.model_validate_json(raw.payload)
    except ValueError as e:  # includes pydantic.ValidationError
        raise MalformedEntryError(raw.entry_id, cause=e) from e

    msg_id = message.msg_id
    return DecodedEntry(
        entry_id=raw.entry_id,
        local_seq_id=msg_id.local_component if msg_id else None,
        payload=message.body.encode("utf-8") if message.body is not None else None,
        src_region=message.src_region,
        remote_seq_ids=tuple((r.region, r.seq_id) for r in msg_id.remote_components) if msg_id else (),
        has_msg_id=msg_id is not None,
    )
