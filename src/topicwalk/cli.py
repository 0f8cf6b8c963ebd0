import asyncio
import logging
from enum import IntEnum
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from topicwalk.api.read_topic import read_topic
from topicwalk.core.config import ReadTopicConfig
from topicwalk.core.constants import DEFAULT_BATCH_SIZE, FIRST_SEQ_ID
from topicwalk.core.errors import MetadataInconsistencyError, NoSegmentsError
from topicwalk.core.models import (
    DecodedEntry,
    ResumeStatus,
    Segment,
    SegmentIndex,
    WalkResult,
    WalkStatus,
)
from topicwalk.decoding.formatter import format_entry, format_segment_banner
from topicwalk.orchestration.utils import build_segment_index, compute_resume_point
from topicwalk.storage.metadata import FileTopicMetadataStore
from topicwalk.storage.segments import SegmentsDir
from topicwalk.utils.logging_config import setup_logging

console = Console()
err_console = Console(stderr=True)


class ExitCode(IntEnum):
    OK = 0
    ERROR = 1
    NO_TOPIC = 2
    NO_SEGMENTS = 3
    NO_SUBSCRIBERS = 4  # reported as OK, reading starts at the requested id


def exit_code_for(result: WalkResult) -> ExitCode:
    match result.status:
        case WalkStatus.COMPLETED | WalkStatus.STOPPED_BY_OPERATOR:
            return ExitCode.OK
        case WalkStatus.NO_TOPIC:
            return ExitCode.NO_TOPIC
        case WalkStatus.NO_SEGMENTS:
            return ExitCode.NO_SEGMENTS
    return ExitCode.ERROR


def console_prompt() -> bool:
    """Ask the operator whether to read the next batch."""
    return click.confirm("Press Y to continue", default=False)


def _print_entry(entry: DecodedEntry) -> None:
    console.print(format_entry(entry), markup=False, highlight=False, soft_wrap=True)


def _print_banner(segment: Segment) -> None:
    console.print()
    console.print(format_segment_banner(segment), markup=False, highlight=False)
    console.print()


@click.group()
@click.option("-v", "--verbose", count=True, help="Log progress (-v) or debug details (-vv)")
def cli(verbose: int) -> None:
    """topicwalk: read a segmented topic from its first unconsumed message."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    setup_logging(level, console=err_console)


@cli.command("read-topic")
@click.option("--root", type=click.Path(path_type=Path, file_okay=False), required=True, help="Store root directory")
@click.option("--topic", required=True, help="Topic to read")
@click.option(
    "--start-seq-id",
    type=click.IntRange(min=FIRST_SEQ_ID),
    default=FIRST_SEQ_ID,
    show_default=True,
    help="Read from here unless subscribers already consumed further",
)
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    default=DEFAULT_BATCH_SIZE,
    show_default=True,
    help="Messages per read (and per prompt)",
)
@click.option(
    "--interactive/--no-interactive",
    default=False,
    show_default=True,
    help="Ask before reading each next batch",
)
def read_topic_cmd(
    root: Path,
    topic: str,
    start_seq_id: int,
    batch_size: int,
    interactive: bool,
) -> None:
    """Print a topic's messages, starting after the least advanced subscriber."""
    config = ReadTopicConfig(
        root=root,
        topic=topic,
        start_seq_id=start_seq_id,
        batch_size=batch_size,
        interactive=interactive,
    )

    try:
        result = asyncio.run(
            read_topic(
                config=config,
                sink=_print_entry,
                prompt=console_prompt,
                on_segment=_print_banner,
            )
        )
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    match result.status:
        case WalkStatus.NO_TOPIC:
            err_console.print(f"No topic {topic} found.", markup=False)
        case WalkStatus.NO_SEGMENTS:
            err_console.print(f"No message is published to topic {topic}", markup=False)
        case WalkStatus.FATAL:
            err_console.print(f"ERROR: read messages of topic {topic} failed: {result.error}", markup=False)
        case _:
            s = result.stats
            console.print(
                f"[bold]{result.status.value}[/]: "
                f"[green]delivered[/]={s.entries_delivered}  "
                f"[red]malformed[/]={s.entries_malformed}  "
                f"[yellow]unavailable[/]={s.segments_unavailable}  "
                f"(segments opened={s.segments_opened}, skipped={s.segments_skipped}, batches={s.batches})"
            )

    raise SystemExit(int(exit_code_for(result)))


def _segments_table(index: SegmentIndex, segments_dir: SegmentsDir, resume_seq_id: int) -> Table:
    table = Table(title="segments")
    table.add_column("segment", justify="right")
    table.add_column("start", justify="right")
    table.add_column("end", justify="right")
    table.add_column("state")
    table.add_column("file")
    table.add_column("consumed")
    for segment in index:
        consumed = segment.end_seq_id is not None and segment.end_seq_id < resume_seq_id
        table.add_row(
            str(segment.segment_id),
            str(segment.start_seq_id),
            "" if segment.end_seq_id is None else str(segment.end_seq_id),
            "open" if segment.is_open else "closed",
            "present" if segments_dir.segment_path(segment.segment_id).is_file() else "missing",
            "yes" if consumed else "no",
        )
    return table


@cli.command("describe-topic")
@click.option("--root", type=click.Path(path_type=Path, file_okay=False), required=True, help="Store root directory")
@click.option("--topic", required=True, help="Topic to describe")
@click.option("--start-seq-id", type=click.IntRange(min=FIRST_SEQ_ID), default=FIRST_SEQ_ID, show_default=True)
def describe_topic_cmd(root: Path, topic: str, start_seq_id: int) -> None:
    """Show a topic's segment index, subscribers and resume point."""
    store = FileTopicMetadataStore(root)

    async def run() -> tuple[SegmentIndex, dict[str, int | None]] | None:
        if not await store.topic_exists(topic):
            return None
        index = build_segment_index(await store.list_segments(topic), topic=topic)
        return index, await store.list_subscriber_states(topic)

    try:
        loaded = asyncio.run(run())
    except NoSegmentsError:
        err_console.print(f"No message is published to topic {topic}", markup=False)
        raise SystemExit(int(ExitCode.NO_SEGMENTS))
    except MetadataInconsistencyError as e:
        raise click.ClickException(e.message) from e
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    if loaded is None:
        err_console.print(f"No topic {topic} found.", markup=False)
        raise SystemExit(int(ExitCode.NO_TOPIC))
    index, consumed = loaded

    resume_point = compute_resume_point(consumed, start_seq_id)
    console.print(_segments_table(index, SegmentsDir(root=root, topic=topic), resume_point.seq_id))

    subscribers = Table(title="subscribers")
    subscribers.add_column("subscriber")
    subscribers.add_column("consumed", justify="right")
    for subscriber_id, seq_id in consumed.items():
        subscribers.add_row(subscriber_id, "" if seq_id is None else str(seq_id))
    console.print(subscribers)

    if resume_point.status is ResumeStatus.NO_SUBSCRIBERS:
        reason = "no subscribers"
    else:
        reason = f"least subscriber {resume_point.least_subscriber}"
    holder = index.find(resume_point.seq_id)
    if holder is not None:
        where = f"segment {holder.segment_id}"
    else:
        where = f"after last closed seq id {index.last_closed_seq_id}"
    console.print(f"[bold]resume[/]: {resume_point.seq_id} ({reason}), {where}")
