from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from topicwalk.core.models import DecodedEntry, RawEntry, Segment, SegmentDescriptor


# ---------------------------------------------------------------------------
# ITopicMetadataStore
# ---------------------------------------------------------------------------

@runtime_checkable
class ITopicMetadataStore(Protocol):
    """
    Abstract source of topic metadata (segment list, subscriptions).

    Domain expectations:
    - Segments come back in the store's native, chronological order.
    - Empty results are valid: a topic may have no segments or no subscribers.
    """

    async def topic_exists(self, topic: str) -> bool:
        """Return True if the topic is known to the store."""
        ...

    async def list_segments(self, topic: str) -> list[SegmentDescriptor]:
        """
        Return the topic's segment descriptors in listed order.

        Implementations:
        - JSONL segment manifest on disk (FileTopicMetadataStore)
        - Coordination service / database
        - In-memory lists for testing
        """
        ...

    async def list_subscriber_states(self, topic: str) -> dict[str, int | None]:
        """
        Return subscriber id -> last consumed sequence id.

        None means the subscriber has not consumed anything yet.
        """
        ...


# ---------------------------------------------------------------------------
# ISegmentHandle / ISegmentStore
# ---------------------------------------------------------------------------

@runtime_checkable
class ISegmentHandle(Protocol):
    """
    Read-only handle on one opened segment.

    Entry ids are physical, 0-based positions inside the segment.
    """

    segment_id: int

    @property
    def last_entry_id(self) -> int:
        """Last readable entry id (-1 when the segment holds no entry yet)."""
        ...

    async def read_entries(self, first_entry_id: int, last_entry_id: int) -> list[RawEntry]:
        """
        Return entries [first_entry_id, last_entry_id] in physical order.

        Raises
        ------
        ReadError
            If the range cannot be read.
        """
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class ISegmentStore(Protocol):
    """
    Abstract segment storage backend.

    Domain expectations:
    - Opening never repairs or fences a segment unless `recovery` is asked for.
    - A reclaimed segment is reported, not hidden.
    """

    async def open_segment(self, segment_id: int, *, recovery: bool = False) -> ISegmentHandle:
        """
        Open a segment for reading.

        Raises
        ------
        SegmentUnavailableError
            If the segment is missing (e.g. garbage collected) or unreadable.
        """
        ...


# ---------------------------------------------------------------------------
# Callbacks
# ---------------------------------------------------------------------------

# Decodes one stored entry; raises MalformedEntryError when it cannot.
PayloadDecoder = Callable[[RawEntry], DecodedEntry]

# Receives every delivered entry, in order.
EntrySink = Callable[[DecodedEntry], None]

# Asked between batches in interactive mode; False stops the walk.
ContinuePrompt = Callable[[], bool]

# Told about each segment right before it is opened.
SegmentListener = Callable[[Segment], None]


def always_continue() -> bool:
    """Continue prompt for non-interactive callers."""
    return True
