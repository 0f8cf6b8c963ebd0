from __future__ import annotations

from topicwalk.core.config import ReadTopicConfig
from topicwalk.core.interfaces import ContinuePrompt, EntrySink, SegmentListener, always_continue
from topicwalk.core.models import WalkResult
from topicwalk.orchestration.orchestrator import walk
from topicwalk.storage.metadata import FileTopicMetadataStore
from topicwalk.storage.segments import ParquetSegmentStore, SegmentsDir


def _setup(config: ReadTopicConfig) -> tuple[FileTopicMetadataStore, ParquetSegmentStore]:
    """Instantiate the file-backed stores for `config.root`."""
    metadata_store = FileTopicMetadataStore(config.root)
    segment_store = ParquetSegmentStore(SegmentsDir(root=config.root, topic=config.topic))
    return metadata_store, segment_store


async def read_topic(
    *,
    config: ReadTopicConfig,
    sink: EntrySink,
    prompt: ContinuePrompt = always_continue,
    on_segment: SegmentListener | None = None,
) -> WalkResult:
    """
    High-level convenience API for scripts and the CLI.
    Reads `config.topic` from the local store under `config.root`.
    """
    metadata_store, segment_store = _setup(config)
    return await walk(
        topic=config.topic,
        metadata_store=metadata_store,
        segment_store=segment_store,
        sink=sink,
        start_seq_id=config.start_seq_id,
        interactive=config.interactive,
        prompt=prompt,
        batch_size=config.batch_size,
        on_segment=on_segment,
    )
