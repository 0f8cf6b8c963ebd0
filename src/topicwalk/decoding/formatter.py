"""Plain-text rendering of decoded entries and segment banners."""

from __future__ import annotations

from topicwalk.core.models import DecodedEntry, Segment


def format_msg_id(entry: DecodedEntry) -> str:
    """LOCAL(n) for local ids, REMOTE(region[n],...) otherwise, N/A without a msg_id."""
    if entry.local_seq_id is not None:
        return f"LOCAL({entry.local_seq_id})"
    if not entry.has_msg_id and not entry.remote_seq_ids:
        return "N/A"
    parts = ",".join(f"{region}[{seq_id}]" for region, seq_id in entry.remote_seq_ids)
    return f"REMOTE({parts})"


def format_entry(entry: DecodedEntry) -> str:
    msg_id = format_msg_id(entry)
    body = entry.payload.decode("utf-8", errors="replace") if entry.payload is not None else "N/A"
    lines = [
        f"---------- MSGID={msg_id} ----------",
        f"MsgId:     {msg_id}",
        f"SrcRegion: {entry.src_region if entry.src_region is not None else 'N/A'}",
        "Message:",
        "",
        body,
        "",
    ]
    return "\n".join(lines)


def format_segment_banner(segment: Segment) -> str:
    return f">>>>> Segment {segment.segment_id} {segment.describe_range()} <<<<<"
