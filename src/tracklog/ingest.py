"""Entry points shared by the upload handler and the batch importer."""

from tracklog.analyzer import StatisticsConfig, compute_statistics
from tracklog.assembler import assemble_track
from tracklog.models import Segment, Track, TrackStatistics
from tracklog.parser import parse_gpx_bytes


def parse_and_summarize(
    raw: bytes, config: StatisticsConfig | None = None
) -> tuple[list[Segment], TrackStatistics]:
    """Parse raw GPX bytes and compute statistics over the segments.

    Raises ParseError subclasses (MalformedDocument, InvalidCoordinate,
    EmptyTrack) unchanged.
    """
    segments = parse_gpx_bytes(raw)
    return segments, compute_statistics(segments, config)


def ingest(
    raw: bytes,
    owner_id: str,
    filename: str,
    title: str | None = None,
    config: StatisticsConfig | None = None,
) -> Track:
    """Parse, summarize and assemble one document into a Track."""
    segments, statistics = parse_and_summarize(raw, config)
    return assemble_track(owner_id, title, filename, segments, statistics)
