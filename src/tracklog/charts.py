"""Elevation profile chart generation."""

import io

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt

from tracklog.distance import cumulative_distances
from tracklog.models import Track

PROFILE_LINE_COLOR = '#4a90d9'
PROFILE_FILL_COLOR = '#cfe0f3'


def profile_series(track: Track) -> list[tuple[list[float], list[float]]]:
    """Build (distances_km, elevations_m) series for plotting, one per segment.

    Points without elevation are left out. Segments without any elevation
    produce no series.
    """
    series = []
    for seg, dists in zip(track.segments, cumulative_distances(list(track.segments))):
        xs = []
        ys = []
        for pt, d in zip(seg.points, dists):
            if pt.elevation is not None:
                xs.append(d / 1000)
                ys.append(pt.elevation)
        if xs:
            series.append((xs, ys))
    return series


def generate_elevation_profile(track: Track, aspect_ratio: float = 3.5) -> bytes:
    """Generate an elevation profile image for a track.

    Each segment is drawn separately so no line is drawn across the gap
    between segments.

    Args:
        track: Track to plot
        aspect_ratio: Width/height ratio (3.5 = wide default)

    Returns PNG image as bytes.

    Raises:
        ValueError: If the track has no elevation data.
    """
    series = profile_series(track)
    if not series:
        raise ValueError(f"Track {track.id} has no elevation data")

    fig_height = 4
    fig_width = fig_height * aspect_ratio
    fig, ax = plt.subplots(figsize=(fig_width, fig_height))
    try:
        min_elev = min(min(ys) for _, ys in series)
        max_elev = max(max(ys) for _, ys in series)
        floor = min_elev - 0.05 * max(max_elev - min_elev, 10.0)

        for xs, ys in series:
            ax.fill_between(xs, ys, floor, color=PROFILE_FILL_COLOR)
            ax.plot(xs, ys, color=PROFILE_LINE_COLOR, linewidth=1.2)

        ax.set_ylim(bottom=floor)
        ax.set_xlim(0, max(xs[-1] for xs, _ in series) or 1)
        ax.set_xlabel('Distance (km)', fontsize=10)
        ax.set_ylabel('Elevation (m)', fontsize=10)
        ax.set_title(track.title, fontsize=11)
        ax.grid(True, alpha=0.3)
        ax.spines['top'].set_visible(False)
        ax.spines['right'].set_visible(False)

        buf = io.BytesIO()
        fig.savefig(buf, format='png', dpi=100)
        return buf.getvalue()
    finally:
        plt.close(fig)
