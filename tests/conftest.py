import os
from datetime import datetime, timedelta, timezone

import pytest

from tracklog.models import Segment, TrackPoint

DATA_DIR = os.path.join(os.path.dirname(__file__), "functional", "data")
SAMPLE_GPX_PATH = os.path.join(DATA_DIR, "sample_ride.gpx")
MALFORMED_GPX_PATH = os.path.join(DATA_DIR, "malformed.gpx")
UNTIMED_GPX_PATH = os.path.join(DATA_DIR, "untimed_route.gpx")

BASE_TIME = datetime(2024, 6, 15, 8, 0, 0, tzinfo=timezone.utc)

# One step of 0.0009 degrees of latitude along a meridian, in meters
LAT_STEP = 0.0009
LAT_STEP_M = 6_371_000 * 0.0009 * 3.141592653589793 / 180


def gpx_document(body: str) -> bytes:
    """Wrap <trk> markup in a GPX 1.1 document."""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="tracklog tests" xmlns="http://www.topografix.com/GPX/1/1">
{body}
</gpx>""".encode()


def trkpt(lat: float, lon: float, ele=None, time: datetime | None = None) -> str:
    inner = ""
    if ele is not None:
        inner += f"<ele>{ele}</ele>"
    if time is not None:
        inner += f"<time>{time.strftime('%Y-%m-%dT%H:%M:%SZ')}</time>"
    return f'<trkpt lat="{lat}" lon="{lon}">{inner}</trkpt>'


def make_segment(elevations=None, seconds=None, lat0=37.7749, lon=-122.4194) -> Segment:
    """Segment heading north in LAT_STEP increments.

    elevations and seconds (offsets from BASE_TIME) are per point; None
    entries leave that field absent.
    """
    n = len(elevations if elevations is not None else seconds)
    points = []
    for i in range(n):
        ele = elevations[i] if elevations is not None else None
        sec = seconds[i] if seconds is not None else None
        points.append(
            TrackPoint(
                lat=lat0 + i * LAT_STEP,
                lon=lon,
                elevation=ele,
                time=BASE_TIME + timedelta(seconds=sec) if sec is not None else None,
            )
        )
    return Segment(points=tuple(points))


@pytest.fixture
def sample_gpx_bytes():
    with open(SAMPLE_GPX_PATH, "rb") as f:
        return f.read()


@pytest.fixture
def malformed_gpx_bytes():
    with open(MALFORMED_GPX_PATH, "rb") as f:
        return f.read()


@pytest.fixture
def timed_segment():
    """Five points ~100m apart, 20s apart (~5 m/s), flat."""
    return make_segment(elevations=[10.0] * 5, seconds=[0, 20, 40, 60, 80])


@pytest.fixture
def segment_factory():
    return make_segment


@pytest.fixture
def gpx_factory():
    """Build GPX bytes from (lat, lon, ele, time) tuples, one list per segment."""

    def build(*segments: list[tuple]) -> bytes:
        body = "<trk>"
        for seg in segments:
            body += "<trkseg>" + "".join(trkpt(*pt) for pt in seg) + "</trkseg>"
        body += "</trk>"
        return gpx_document(body)

    return build


@pytest.fixture
def step_m():
    """Distance in meters of one LAT_STEP along a meridian."""
    return LAT_STEP_M


@pytest.fixture
def sample_paths():
    return {
        "sample": SAMPLE_GPX_PATH,
        "malformed": MALFORMED_GPX_PATH,
        "untimed": UNTIMED_GPX_PATH,
    }
