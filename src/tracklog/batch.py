"""Batch import: run many files through the ingestion pipeline.

Each file is parsed, summarized and assembled independently, on a small
thread pool. Saving to the store is serialized. A failure in one file is
recorded in the report and never stops the others.
"""

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from threading import Event, Lock
from typing import Iterable, Union

from tracklog.analyzer import StatisticsConfig
from tracklog.errors import TrackError
from tracklog.ingest import ingest
from tracklog.models import BatchReport, ImportOutcome, Track
from tracklog.store import TrackStore

logger = logging.getLogger(__name__)

# A path on disk, or an in-memory (name, bytes) pair
Source = Union[str, Path, tuple[str, bytes]]


def _source_name(source: Source) -> str:
    if isinstance(source, tuple):
        return source[0]
    return str(source)


def _read_source(source: Source) -> tuple[str, bytes]:
    """Return (filename, raw bytes) for a source."""
    if isinstance(source, tuple):
        name, raw = source
        return Path(name).name, raw
    path = Path(source)
    return path.name, path.read_bytes()


def _import_one(
    source: Source,
    owner_id: str,
    store: TrackStore,
    store_lock: Lock,
    config: StatisticsConfig | None,
) -> ImportOutcome:
    name = _source_name(source)
    try:
        filename, raw = _read_source(source)
        track: Track = ingest(raw, owner_id, filename, config=config)
        with store_lock:
            track_id = store.save(track)
    except TrackError as e:
        logger.warning("Import of %s failed: %s: %s", name, e.kind, e)
        return ImportOutcome(source=name, status="error", error_kind=e.kind, message=str(e))
    except OSError as e:
        logger.warning("Cannot read %s: %s", name, e)
        return ImportOutcome(source=name, status="error", error_kind="OSError", message=str(e))

    logger.debug(
        "Imported %s as %s (%d points, %.0f m)",
        name, track_id, track.statistics.point_count, track.statistics.total_distance,
    )
    return ImportOutcome(source=name, status="ok", track_id=track_id)


def import_files(
    sources: Iterable[Source],
    owner_id: str,
    store: TrackStore,
    workers: int = 1,
    config: StatisticsConfig | None = None,
    cancel: Event | None = None,
) -> BatchReport:
    """Import files in order and report one outcome per input.

    Args:
        sources: File paths or (name, bytes) pairs.
        owner_id: Owner of every imported track.
        store: Where successfully assembled tracks are saved.
        workers: Maximum number of files processed at the same time.
        config: Statistics thresholds.
        cancel: When set, no further files are started; files already in
            progress finish and the rest are reported as "cancelled".

    Returns:
        BatchReport with outcomes in input order (not completion order).
    """
    sources = list(sources)
    outcomes: list[ImportOutcome | None] = [None] * len(sources)
    store_lock = Lock()
    workers = max(1, workers)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        in_flight: dict[Future, int] = {}
        next_idx = 0

        while next_idx < len(sources) or in_flight:
            while (
                next_idx < len(sources)
                and len(in_flight) < workers
                and not (cancel is not None and cancel.is_set())
            ):
                future = executor.submit(
                    _import_one, sources[next_idx], owner_id, store, store_lock, config
                )
                in_flight[future] = next_idx
                next_idx += 1

            if not in_flight:
                break

            done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
            for future in done:
                idx = in_flight.pop(future)
                try:
                    outcomes[idx] = future.result()
                except Exception as e:
                    logger.exception("Unexpected failure importing %s", _source_name(sources[idx]))
                    outcomes[idx] = ImportOutcome(
                        source=_source_name(sources[idx]),
                        status="error",
                        error_kind=type(e).__name__,
                        message=str(e),
                    )

    for idx, outcome in enumerate(outcomes):
        if outcome is None:
            outcomes[idx] = ImportOutcome(source=_source_name(sources[idx]), status="cancelled")

    report = BatchReport(outcomes=outcomes)
    logger.info(
        "Batch import finished: %d of %d files imported", report.succeeded, len(sources)
    )
    return report
