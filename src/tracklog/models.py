import math
from dataclasses import dataclass, field
from datetime import datetime

from tracklog.errors import EmptyTrack, InvalidCoordinate


@dataclass(frozen=True)
class TrackPoint:
    lat: float
    lon: float
    elevation: float | None = None  # meters
    time: datetime | None = None  # timezone-aware UTC

    def __post_init__(self):
        if not (math.isfinite(self.lat) and math.isfinite(self.lon)):
            raise InvalidCoordinate(self.lat, self.lon)
        if not -90.0 <= self.lat <= 90.0 or not -180.0 <= self.lon <= 180.0:
            raise InvalidCoordinate(self.lat, self.lon)


@dataclass(frozen=True)
class Segment:
    """One continuous recording (a GPX <trkseg>).

    anomalies holds the indices of points whose timestamp precedes the
    previous timed point in this segment. Points are never reordered.
    """
    points: tuple[TrackPoint, ...]
    anomalies: tuple[int, ...] = ()

    def __post_init__(self):
        if not self.points:
            raise EmptyTrack("Segment contains no points")
        # Accept lists from callers but store an immutable tuple
        object.__setattr__(self, "points", tuple(self.points))
        object.__setattr__(self, "anomalies", tuple(self.anomalies))

    def __len__(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class TrackStatistics:
    total_distance: float  # meters
    elevation_gain: float | None  # meters
    elevation_loss: float | None  # meters, positive magnitude
    start_time: datetime | None
    end_time: datetime | None
    duration: float | None  # seconds
    moving_time: float | None  # seconds
    max_speed: float | None  # m/s
    avg_moving_speed: float | None  # m/s (distance / moving time)
    min_elevation: float | None  # meters
    max_elevation: float | None  # meters
    point_count: int
    segment_count: int
    skipped_time_pairs: int = 0  # timed pairs with zero or negative elapsed time


@dataclass
class Track:
    id: str
    owner_id: str
    title: str
    filename: str
    segments: tuple[Segment, ...]
    statistics: TrackStatistics
    created_at: datetime

    @property
    def points(self) -> list[TrackPoint]:
        """All points of all segments, in order."""
        return [pt for seg in self.segments for pt in seg.points]


@dataclass
class ImportOutcome:
    source: str
    status: str  # "ok", "error" or "cancelled"
    track_id: str | None = None
    error_kind: str | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass
class BatchReport:
    outcomes: list[ImportOutcome] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        """True if any file failed to import."""
        return any(o.status == "error" for o in self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    def summary(self) -> dict[str, str]:
        """Map each source to "ok", "cancelled" or its error kind."""
        return {
            o.source: (o.error_kind or o.status) if not o.ok else "ok"
            for o in self.outcomes
        }
