"""Message decoding and formatting.

This package provides:
- The stored message schema (Message, MessageSeqId, RegionSeqId)
- decode_payload, the default PayloadDecoder of a walk
- Plain-text formatters for entries and segment banners
"""

from topicwalk.decoding.formatter import format_entry, format_msg_id, format_segment_banner
from topicwalk.decoding.message import Message, MessageSeqId, RegionSeqId, decode_payload

__all__ = [
    "decode_payload",
    "Message",
    "MessageSeqId",
    "RegionSeqId",
    "format_entry",
    "format_msg_id",
    "format_segment_banner",
]
