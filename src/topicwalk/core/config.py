from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from topicwalk.core.constants import DEFAULT_BATCH_SIZE, FIRST_SEQ_ID


@dataclass(frozen=True)
class ReadTopicConfig:
    """Configuration for reading one topic from a local store (API / CLI)."""

    root: Path
    topic: str
    start_seq_id: int = FIRST_SEQ_ID
    batch_size: int = DEFAULT_BATCH_SIZE
    interactive: bool = False

    def __post_init__(self) -> None:
        if not self.topic:
            raise ValueError("topic must not be empty")
        if self.start_seq_id < FIRST_SEQ_ID:
            raise ValueError(f"start_seq_id must be >= {FIRST_SEQ_ID}")
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
