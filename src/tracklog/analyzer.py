import logging
from dataclasses import dataclass

from tracklog.distance import point_distance
from tracklog.models import Segment, TrackStatistics

logger = logging.getLogger(__name__)

# Elevation changes smaller than this (m) are treated as GPS/barometric noise
NOISE_THRESHOLD = 1.0

# Speed below this threshold (m/s) counts as stopped
STILLNESS_THRESHOLD = 0.5  # ~1.8 km/h


@dataclass(frozen=True)
class StatisticsConfig:
    noise_threshold: float = NOISE_THRESHOLD  # meters
    stillness_threshold: float = STILLNESS_THRESHOLD  # m/s


def _segment_distance(segment: Segment) -> float:
    pts = segment.points
    return sum(point_distance(pts[i - 1], pts[i]) for i in range(1, len(pts)))


def _segment_elevation(segment: Segment, noise_threshold: float) -> tuple[float, float]:
    """Accumulate gain and loss over one segment.

    The reference elevation only moves when a change of at least
    noise_threshold is counted, so slow drifts made of small steps still
    add up once they exceed the threshold.

    Returns (gain, loss), loss as a positive magnitude.
    """
    gain = 0.0
    loss = 0.0
    reference = None
    for pt in segment.points:
        if pt.elevation is None:
            continue
        if reference is None:
            reference = pt.elevation
            continue
        delta = pt.elevation - reference
        if abs(delta) < noise_threshold:
            continue
        if delta > 0:
            gain += delta
        else:
            loss += -delta
        reference = pt.elevation
    return gain, loss


def _segment_speeds(segment: Segment, stillness_threshold: float) -> tuple[float, float | None, int]:
    """Walk consecutive timed points of one segment.

    Untimed points between two timed ones contribute their path distance
    to that pair. Pairs with zero or negative elapsed time are skipped.

    Returns (moving_seconds, max_speed, skipped_pairs).
    """
    moving_seconds = 0.0
    max_speed = None
    skipped = 0

    prev_timed = None
    dist_since = 0.0
    pts = segment.points
    for i, pt in enumerate(pts):
        if i > 0:
            dist_since += point_distance(pts[i - 1], pt)
        if pt.time is None:
            continue
        if prev_timed is not None:
            elapsed = (pt.time - prev_timed.time).total_seconds()
            if elapsed <= 0:
                skipped += 1
            else:
                speed = dist_since / elapsed
                # Strictly greater: ties keep the first occurrence
                if max_speed is None or speed > max_speed:
                    max_speed = speed
                if speed >= stillness_threshold:
                    moving_seconds += elapsed
        prev_timed = pt
        dist_since = 0.0

    return moving_seconds, max_speed, skipped


def compute_statistics(segments: list[Segment], config: StatisticsConfig | None = None) -> TrackStatistics:
    """Compute TrackStatistics over a sequence of segments.

    Distance, elevation and speeds are never computed across a segment
    boundary. Metrics that need optional data (elevation, timestamps) are
    None when that data is absent everywhere.
    """
    if config is None:
        config = StatisticsConfig()

    total_distance = 0.0
    gain = 0.0
    loss = 0.0
    moving_seconds = 0.0
    max_speed = None
    skipped = 0
    point_count = 0
    elevations: list[float] = []
    times = []

    for segment in segments:
        point_count += len(segment.points)
        total_distance += _segment_distance(segment)

        seg_gain, seg_loss = _segment_elevation(segment, config.noise_threshold)
        gain += seg_gain
        loss += seg_loss

        seg_moving, seg_max, seg_skipped = _segment_speeds(segment, config.stillness_threshold)
        moving_seconds += seg_moving
        skipped += seg_skipped
        if seg_max is not None and (max_speed is None or seg_max > max_speed):
            max_speed = seg_max

        for pt in segment.points:
            if pt.elevation is not None:
                elevations.append(pt.elevation)
            if pt.time is not None:
                times.append(pt.time)

    if skipped:
        logger.debug("Skipped %d timed pairs with non-positive elapsed time", skipped)

    has_elevation = bool(elevations)
    if times:
        start_time = min(times)
        end_time = max(times)
        duration = (end_time - start_time).total_seconds()
        moving_time = moving_seconds
    else:
        start_time = end_time = None
        duration = moving_time = None

    avg_moving_speed = total_distance / moving_time if moving_time else None

    return TrackStatistics(
        total_distance=total_distance,
        elevation_gain=gain if has_elevation else None,
        elevation_loss=loss if has_elevation else None,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
        moving_time=moving_time,
        max_speed=max_speed,
        avg_moving_speed=avg_moving_speed,
        min_elevation=min(elevations) if has_elevation else None,
        max_elevation=max(elevations) if has_elevation else None,
        point_count=point_count,
        segment_count=len(segments),
        skipped_time_pairs=skipped,
    )
