"""GPX document -> list of Segments."""

import logging
import math
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path

import gpxpy
import gpxpy.gpx

from tracklog.errors import EmptyTrack, MalformedDocument
from tracklog.models import Segment, TrackPoint

logger = logging.getLogger(__name__)


def _is_number(text: str | None) -> bool:
    if text is None:
        return False
    try:
        return math.isfinite(float(text))
    except ValueError:
        return False


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _prepare(raw: bytes) -> str:
    """Check the document with ElementTree and hand gpxpy a cleaned copy.

    The root element must be <gpx>. gpxpy rejects the whole document on a
    bad <ele> value, so those elements are removed and the point is parsed
    without an elevation. The result is re-serialized as text without an
    XML declaration and without the GPX default namespace, so the declared
    byte encoding has already been applied.
    """
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as e:
        raise MalformedDocument(f"Error parsing XML: {e}") from e

    if _local_name(root.tag) != "gpx":
        raise MalformedDocument(f"Expected <gpx> root element, found <{_local_name(root.tag)}>")

    bad = [
        (parent, child)
        for parent in root.iter()
        for child in parent
        if _local_name(child.tag) == "ele" and not _is_number(child.text)
    ]
    for parent, child in bad:
        logger.debug("Dropping unparsable elevation %r", child.text)
        parent.remove(child)

    if root.tag.startswith("{"):
        prefix = root.tag[: root.tag.index("}") + 1]
        for elem in root.iter():
            if elem.tag.startswith(prefix):
                elem.tag = elem.tag[len(prefix):]

    return ET.tostring(root, encoding="unicode")


def _to_utc(t: datetime | None) -> datetime | None:
    if t is None:
        return None
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def _load(raw: bytes) -> gpxpy.gpx.GPX:
    text = _prepare(raw)
    try:
        return gpxpy.parse(text)
    except gpxpy.gpx.GPXXMLSyntaxException as e:
        raise MalformedDocument(str(e)) from e
    except gpxpy.gpx.GPXException as e:
        raise MalformedDocument(f"Invalid GPX: {e}") from e


def _build_segment(gpx_segment: gpxpy.gpx.GPXTrackSegment, seg_index: int) -> Segment | None:
    points: list[TrackPoint] = []
    anomalies: list[int] = []
    last_time = None
    for pt in gpx_segment.points:
        t = _to_utc(pt.time)
        if t is not None:
            if last_time is not None and t < last_time:
                logger.debug(
                    "Ordering anomaly in segment %d at point %d: %s precedes %s",
                    seg_index, len(points), t.isoformat(), last_time.isoformat(),
                )
                anomalies.append(len(points))
            last_time = t
        points.append(
            TrackPoint(
                lat=pt.latitude,
                lon=pt.longitude,
                elevation=pt.elevation,
                time=t,
            )
        )
    if not points:
        return None
    return Segment(points=tuple(points), anomalies=tuple(anomalies))


def parse_gpx_bytes(raw: bytes) -> list[Segment]:
    """Parse a GPX document and return its non-empty track segments.

    Raises:
        MalformedDocument: broken XML or a root element other than <gpx>.
        InvalidCoordinate: a point outside the valid lat/lon ranges.
        EmptyTrack: no segment contains any points.
    """
    gpx = _load(raw)

    segments: list[Segment] = []
    for track in gpx.tracks:
        for gpx_segment in track.segments:
            segment = _build_segment(gpx_segment, len(segments))
            if segment is None:
                logger.debug("Dropping empty segment in track %r", track.name)
                continue
            segments.append(segment)

    if not segments:
        raise EmptyTrack("GPX document contains no track points")
    return segments


def parse_gpx(filepath: str | Path) -> list[Segment]:
    """Parse a GPX file and return a list of Segments."""
    with open(filepath, "rb") as f:
        return parse_gpx_bytes(f.read())
