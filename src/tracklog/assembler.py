import uuid
from datetime import datetime, timezone

from tracklog.errors import ValidationError
from tracklog.models import Segment, Track, TrackStatistics


def assemble_track(
    owner_id: str | None,
    title: str | None,
    filename: str,
    segments: list[Segment],
    statistics: TrackStatistics,
    now: datetime | None = None,
) -> Track:
    """Build a persistable Track from parsed segments and their statistics.

    The title falls back to the filename when not given. Segments and
    statistics are passed through untouched.

    Raises:
        ValidationError: no segments, an empty segment, or a missing owner
            id or filename.
    """
    if owner_id is None or not str(owner_id).strip():
        raise ValidationError("Owner id is required")
    if not filename:
        raise ValidationError("Filename is required")
    if not segments:
        raise ValidationError("Track has no segments")
    if any(not seg.points for seg in segments):
        raise ValidationError("Track contains an empty segment")

    if title is None or not title.strip():
        title = filename

    return Track(
        id=uuid.uuid4().hex,
        owner_id=str(owner_id),
        title=title,
        filename=filename,
        segments=tuple(segments),
        statistics=statistics,
        created_at=now or datetime.now(timezone.utc),
    )
