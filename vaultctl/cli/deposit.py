"""Deposit commands for vaultctl."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

import click

from vaultctl.cli.common import Context, global_options, handle_errors
from vaultctl.core.exceptions import (
    DepositCancelledError,
    DepositFinalizationError,
    DepositUploadError,
    ValidationError,
)
from vaultctl.core.output import (
    DepositProgressDisplay,
    OutputFormat,
    print_info,
    print_output,
    print_success,
    print_warning,
)
from vaultctl.core.validation import validate_deposit_id, validate_remote_path
from vaultctl.models.progress import DepositSummary
from vaultctl.services.batcher import Batcher, BatchItem
from vaultctl.services.deposits import DepositService
from vaultctl.uploaders.common import collect_files, stage_stream

SUMMARY_COLUMNS = [
    "deposit_id",
    "total",
    "succeeded",
    "failed",
    "skipped",
    "size_mb",
    "duration",
    "throughput_mbps",
]


@click.group()
def deposit() -> None:
    """Upload files to Vault as deposits."""
    pass


# =============================================================================
# Helpers
# =============================================================================


def _collect_items(
    sources: tuple[str, ...],
    name: str | None,
    skip_content_type_detection: bool,
) -> list[BatchItem]:
    """Build batch items from files, directories and stdin ("-")."""
    items: list[BatchItem] = []
    try:
        _append_items(items, sources, name, skip_content_type_detection)
    except BaseException:
        for item in items:
            item.cleanup()
        raise
    return items


def _append_items(
    items: list[BatchItem],
    sources: tuple[str, ...],
    name: str | None,
    skip_content_type_detection: bool,
) -> None:
    for source in sources:
        if source == "-":
            if not name:
                raise click.UsageError("--name is required when reading from stdin")
            remote = validate_remote_path(name)
            staged = stage_stream(click.get_binary_stream("stdin"), suffix=Path(remote).suffix)
            items.append(
                BatchItem.from_path(
                    staged,
                    remote,
                    skip_content_type_detection=skip_content_type_detection,
                    delete_after_transfer=True,
                )
            )
            continue

        path = Path(source)
        if path.is_dir():
            pairs = [(f, f"{path.name}/{f.relative_to(path).as_posix()}") for f in collect_files(path)]
        elif path.is_file():
            pairs = [(path, path.name)]
        else:
            raise click.BadParameter(f"No such file or directory: {source}", param_hint="SOURCE")

        for file_path, remote in pairs:
            items.append(
                BatchItem.from_path(
                    file_path,
                    validate_remote_path(remote),
                    skip_content_type_detection=skip_content_type_detection,
                )
            )

    seen: set[str] = set()
    for item in items:
        if item.remote in seen:
            raise ValidationError(f"Duplicate destination path: {item.remote}", field="SOURCE")
        seen.add(item.remote)


def _run_deposit(batcher: Batcher, cancel: threading.Event) -> DepositSummary:
    """Run the deposit in a worker thread so Ctrl-C can cancel it."""
    outcome: dict[str, Any] = {}

    def target() -> None:
        try:
            outcome["summary"] = batcher.shutdown(cancel)
        except BaseException as e:
            outcome["error"] = e

    worker = threading.Thread(target=target, name="vault-deposit", daemon=True)
    worker.start()
    try:
        while worker.is_alive():
            worker.join(0.2)
    except KeyboardInterrupt:
        print_warning("Interrupted, cancelling deposit (in-flight chunks will finish)...")
        cancel.set()
        worker.join()

    if "error" in outcome:
        raise outcome["error"]
    return outcome["summary"]


def _print_summary(ctx: Context, summary: DepositSummary) -> None:
    data = summary.to_dict()
    if ctx.output_format == OutputFormat.JSON or ctx.quiet:
        print_output(data, format=ctx.output_format, quiet=ctx.quiet)
    else:
        print_output([data], format=ctx.output_format, columns=SUMMARY_COLUMNS)


# =============================================================================
# Commands
# =============================================================================


@deposit.command("upload")
@click.argument("sources", nargs=-1, required=True)
@click.option("--collection", "-c", help="Destination collection or folder path")
@click.option("--name", help="Destination name for data read from stdin")
@click.option("--resume", "resume_id", type=int, help="Resume an existing deposit by id")
@click.option("--chunk-size", type=int, help="Upload chunk size in bytes")
@click.option("--max-parallel-chunks", type=int, help="Concurrent chunk uploads per file")
@click.option("--max-parallel-uploads", type=int, help="Concurrent file uploads")
@click.option("--poll-interval", type=float, help="Seconds between deposit status polls")
@click.option("--no-progress", is_flag=True, help="Do not show the progress bar")
@click.option(
    "--skip-content-type-detection",
    is_flag=True,
    default=None,
    help="Send every file as application/octet-stream",
)
@global_options
@handle_errors
def deposit_upload(
    ctx: Context,
    sources: tuple[str, ...],
    collection: str | None,
    name: str | None,
    resume_id: int | None,
    chunk_size: int | None,
    max_parallel_chunks: int | None,
    max_parallel_uploads: int | None,
    poll_interval: float | None,
    no_progress: bool,
    skip_content_type_detection: bool | None,
) -> None:
    """Upload files and directories as one deposit.

    Directories are uploaded recursively below a folder of the same name.
    Use "-" to read a single file from stdin (requires --name).

    Example:
        vaultctl deposit upload ./scans -c /Org/Collection
        tar c ./data | vaultctl deposit upload - --name data.tar -c /Org/Collection
        vaultctl deposit upload ./scans -c /Org/Collection --resume 42
    """
    profile = ctx.get_profile()
    collection = collection or profile.collection
    if not collection:
        raise click.UsageError("Collection required. Pass --collection or set it in the profile.")
    root = "/" + validate_remote_path(collection)

    options = profile.deposit.replace(
        chunk_size=chunk_size,
        max_parallel_chunks=max_parallel_chunks,
        max_parallel_uploads=max_parallel_uploads,
        poll_interval=poll_interval,
        resume_deposit_id=validate_deposit_id(resume_id) if resume_id is not None else None,
        suppress_progress=True if (no_progress or ctx.quiet) else None,
        skip_content_type_detection=skip_content_type_detection,
    )

    with ctx.get_client() as client:
        service = DepositService(client)
        display = DepositProgressDisplay()
        batcher = Batcher.from_options(service, root, options, progress_callback=display)

        for item in _collect_items(sources, name, options.skip_content_type_detection):
            batcher.add(item)

        if not options.suppress_progress:
            print_info(f"Depositing {len(batcher)} file(s) into {root}")

        cancel = threading.Event()
        try:
            if options.suppress_progress:
                summary = _run_deposit(batcher, cancel)
            else:
                with display:
                    summary = _run_deposit(batcher, cancel)
        except DepositCancelledError as e:
            if e.deposit_id:
                print_info(f"Resume with: vaultctl deposit upload ... --resume {e.deposit_id}")
            raise
        except DepositUploadError as e:
            if e.summary is not None and not ctx.quiet:
                _print_summary(ctx, e.summary)
            print_info(f"Retry the failed files with --resume {e.deposit_id}")
            raise
        except DepositFinalizationError as e:
            print_info(f"Check progress with: vaultctl deposit status {e.deposit_id}")
            print_info(f"Resume with: vaultctl deposit upload ... --resume {e.deposit_id}")
            raise

    _print_summary(ctx, summary)
    if not ctx.quiet and ctx.output_format == OutputFormat.TABLE:
        print_success(f"Deposit {summary.deposit_id} complete")


@deposit.command("status")
@click.argument("deposit_id", type=int)
@global_options
@handle_errors
def deposit_status(ctx: Context, deposit_id: int) -> None:
    """Show file counts of a deposit.

    Example:
        vaultctl deposit status 42
    """
    deposit_id = validate_deposit_id(deposit_id)
    with ctx.get_client() as client:
        status = DepositService(client).deposit_status(deposit_id)

    data: dict[str, Any] = {"deposit_id": deposit_id, **status.to_counts()}
    print_output(data, format=ctx.output_format, quiet=ctx.quiet)
